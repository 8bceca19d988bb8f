"""
Frame Transformation

Turns a raw frame signature (e.g. 'java.net.SocketInputStream.socketRead0')
into the text shown in the folded stack:
- frames matching a collapse pattern become '<pattern>...'
- package names can be shortened to their initials
"""

import re
from typing import Iterable, List, Optional, Tuple


COLLAPSE_SUFFIX = "..."

# Dotted prefix plus a trailing 'Class.method'
PACKAGE_SPLIT_PATTERN = re.compile(r'(.*\.)([^.]+\.[^.]+)$')
PACKAGE_WORD_PATTERN = re.compile(r'(\w)\w*')


class CollapsePattern:
    """A frame collapse pattern, searched as a regular expression."""

    def __init__(self, label: str):
        """
        Args:
            label: Regular expression, also used as the placeholder label

        Raises:
            ValueError: If label is empty or not a valid regular expression
        """
        if not label:
            raise ValueError("Collapse pattern must not be empty")
        try:
            self._regex = re.compile(label)
        except re.error as e:
            raise ValueError(f"Invalid collapse pattern {label!r}: {e}") from e
        self.label = label

    @property
    def placeholder(self) -> str:
        """Text that replaces a matching frame."""
        return self.label + COLLAPSE_SUFFIX

    def matches(self, text: str) -> bool:
        return self._regex.search(text) is not None

    def __repr__(self):
        return f"CollapsePattern({self.label!r})"


def shorten_package(signature: str) -> str:
    """
    Reduce every package word of a signature to its first character.

    'com.google.common.collect.ImmutableMap$Builder.put' becomes
    'c.g.c.c.ImmutableMap$Builder.put'. The last two dot segments are kept.
    Signatures without a package prefix are returned unchanged.
    """
    match = PACKAGE_SPLIT_PATTERN.match(signature)
    if match is None:
        return signature

    packages, class_method = match.groups()
    return PACKAGE_WORD_PATTERN.sub(r'\1', packages) + class_method


class FrameTransformer:
    """Applies collapse patterns and package shortening to frame signatures."""

    def __init__(self, collapse_frames: Iterable[str] = (), shorten_pkgs: bool = False):
        """
        Args:
            collapse_frames: Ordered collapse patterns; the first match wins
            shorten_pkgs: Whether to shorten package names
        """
        self.collapse_patterns: List[CollapsePattern] = [
            CollapsePattern(label) for label in collapse_frames
        ]
        self.shorten_pkgs = shorten_pkgs

    def match_collapse(self, signature: str) -> Optional[CollapsePattern]:
        """Return the first collapse pattern matching signature, if any."""
        for pattern in self.collapse_patterns:
            if pattern.matches(signature):
                return pattern
        return None

    def transform(self, signature: str) -> Tuple[str, bool]:
        """
        Compute the display text of a frame.

        Args:
            signature: Frame signature without the 'at'/'-' marker and arguments

        Returns:
            Tuple of (display text, collapsed) where collapsed tells whether
            the text is a collapse placeholder
        """
        collapse = self.match_collapse(signature)
        if collapse is not None:
            return collapse.placeholder, True

        if self.shorten_pkgs:
            return shorten_package(signature), False

        return signature, False
