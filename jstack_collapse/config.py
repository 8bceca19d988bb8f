"""
Collapse Configuration

Resolved, immutable settings for one collapse run. Defaults may be provided
through JSTACK_COLLAPSE_* environment variables or a .env file; command-line
flags override them.
"""

import os
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Optional, Tuple

from dotenv import load_dotenv

from .frames import CollapsePattern
from .states import RUNNABLE

# Load environment variables
load_dotenv()


ENV_PREFIX = "JSTACK_COLLAPSE_"

DEFAULT_STATES = (RUNNABLE,)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_bool(value: str) -> bool:
    """
    Parse a boolean environment value.

    Raises:
        ValueError: If value is not a recognised boolean spelling
    """
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def parse_list(value: str) -> Tuple[str, ...]:
    """Split a comma separated environment value, dropping empty items."""
    return tuple(item.strip() for item in value.split(',') if item.strip())


def resolve_states(extra_states: Iterable[str] = ()) -> FrozenSet[str]:
    """Included states: RUNNABLE plus any requested ones."""
    return frozenset(DEFAULT_STATES) | frozenset(extra_states)


@dataclass(frozen=True)
class CollapseConfig:
    """
    Settings for collapsing thread dumps.

    Attributes:
        include_thread_name: Put the thread name at the root of each stack
        include_thread_id: Keep the trailing '-<digits>' of thread names
        shorten_pkgs: Shorten package names to their initials
        collapse_frames: Ordered frame collapse patterns
        states: Thread states whose stacks are counted
        quiet: Suppress unrecognized line warnings
        stats: Report how many thread entries ended in each state
    """
    include_thread_name: bool = True
    include_thread_id: bool = False
    shorten_pkgs: bool = False
    collapse_frames: Tuple[str, ...] = ()
    states: FrozenSet[str] = field(default_factory=resolve_states)
    quiet: bool = False
    stats: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'collapse_frames', tuple(self.collapse_frames))
        object.__setattr__(self, 'states', frozenset(self.states))

        # Fail early on bad regular expressions
        for label in self.collapse_frames:
            CollapsePattern(label)

    def with_overrides(self, **overrides) -> 'CollapseConfig':
        """Return a copy with the given non-None fields replaced."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> 'CollapseConfig':
        """
        Build a configuration from JSTACK_COLLAPSE_* environment variables.

        Args:
            environ: Mapping to read, defaults to os.environ

        Raises:
            ValueError: On malformed boolean values or collapse patterns
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        kwargs = {}
        for name, attr in (
            ("INCLUDE_TNAME", "include_thread_name"),
            ("INCLUDE_TID", "include_thread_id"),
            ("SHORTEN_PKGS", "shorten_pkgs"),
            ("QUIET", "quiet"),
            ("STATS", "stats"),
        ):
            value = get(name)
            if value is not None:
                kwargs[attr] = parse_bool(value)

        collapse_frames = get("COLLAPSE_FRAMES")
        if collapse_frames is not None:
            kwargs["collapse_frames"] = parse_list(collapse_frames)

        states = get("STATES")
        if states is not None:
            kwargs["states"] = resolve_states(parse_list(states))

        return cls(**kwargs)
