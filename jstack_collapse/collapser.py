"""
jstack Stack Collapser

Folds Java thread dumps (jstack, jstack -F) into one line per unique call
path, with methods separated by semicolons and followed by an occurrence
count, for use with flame-graph renderers.

Feed it the output of many jstack runs appended together: each thread entry
of each capture whose inferred state is included (RUNNABLE by default) adds
one sample to its call path.
"""

import io
import re
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, List, Optional, Tuple

from .config import CollapseConfig
from .frames import FrameTransformer
from .lines import LineKind, classify_line
from .logger import DiagnosticsLogger
from .states import UNKNOWN_STATE, classify_state


STACK_SEPARATOR = ";"

THREAD_ID_SUFFIX_PATTERN = re.compile(r'-\d+$')


# ============================================================================
# Aggregates
# ============================================================================

class StackAggregator:
    """Counts occurrences of folded stacks for one run."""

    def __init__(self):
        self.counts: Counter = Counter()

    def increment(self, key: str, count: int = 1) -> None:
        self.counts[key] += count

    def merge(self, other: 'StackAggregator') -> None:
        """Add the counts of another aggregator (e.g. from another input chunk)."""
        self.counts.update(other.counts)

    def finalize(self) -> List[Tuple[str, int]]:
        """All (stack, count) pairs sorted by stack."""
        return sorted(self.counts.items())

    def format_lines(self) -> List[str]:
        return [f"{key} {count}" for key, count in self.finalize()]

    def __len__(self):
        return len(self.counts)


class StateTally:
    """Counts how many thread entries ended in each state."""

    def __init__(self):
        self.counts: Counter = Counter()

    def record(self, state: str) -> None:
        self.counts[state] += 1

    def merge(self, other: 'StateTally') -> None:
        self.counts.update(other.counts)

    def finalize(self) -> List[Tuple[str, int]]:
        return sorted(self.counts.items())

    def format_lines(self) -> List[str]:
        return [f"{state}: {count}" for state, count in self.finalize()]


# ============================================================================
# Thread Block
# ============================================================================

@dataclass
class ThreadBlock:
    """
    In-progress thread-dump entry.

    Attributes:
        name: Thread name to put at the root of the stack, if any
        state: Inferred thread state
        frames: Display frames, root first (frames arrive leaf first and are
            prepended)
    """
    name: Optional[str] = None
    state: str = UNKNOWN_STATE
    frames: Deque[str] = field(default_factory=deque)

    def add_frame(self, display: str, collapsed: bool = False) -> None:
        """Prepend a frame, merging runs of the same collapse placeholder."""
        if collapsed and self.frames and self.frames[0] == display:
            return
        self.frames.appendleft(display)

    def folded(self) -> str:
        """Semicolon-joined stack, thread name first."""
        parts = list(self.frames)
        if self.name is not None:
            parts.insert(0, self.name)
        return STACK_SEPARATOR.join(parts)


# ============================================================================
# Dispatcher
# ============================================================================

class StackCollapser:
    """
    Drives thread-dump lines through the per-entry state machine.

    Usage:
        collapser = StackCollapser(CollapseConfig())
        collapser.collapse(lines)
        for line in collapser.aggregator.format_lines():
            print(line)
    """

    def __init__(
        self,
        config: Optional[CollapseConfig] = None,
        aggregator: Optional[StackAggregator] = None,
        tally: Optional[StateTally] = None,
        logger: Optional[DiagnosticsLogger] = None
    ):
        """
        Args:
            config: Run configuration (defaults to CollapseConfig())
            aggregator: Stack table to fill; a new one if None
            tally: State table to fill; a new one if None
            logger: Diagnostics sink; a new stderr logger if None
        """
        self.config = config or CollapseConfig()
        self.aggregator = aggregator if aggregator is not None else StackAggregator()
        self.tally = tally if tally is not None else StateTally()
        self.logger = logger or DiagnosticsLogger(quiet=self.config.quiet)
        self.transformer = FrameTransformer(
            self.config.collapse_frames,
            shorten_pkgs=self.config.shorten_pkgs,
        )
        self.block = ThreadBlock()
        self.line_number = 0

    def _thread_name(self, name: str) -> Optional[str]:
        if not self.config.include_thread_name:
            return None
        if not self.config.include_thread_id:
            name = THREAD_ID_SUFFIX_PATTERN.sub('', name)
        return name

    def feed(self, line: str) -> None:
        """Process one input line."""
        self.line_number += 1
        line = line.rstrip('\r\n')
        kind, text = classify_line(line)
        block = self.block

        if kind is LineKind.BLANK:
            self.finish_block()
            return

        if kind is LineKind.THREAD_HEADER:
            block.name = self._thread_name(text)
        elif kind is LineKind.FRAME:
            display, collapsed = self.transformer.transform(text)
            block.add_frame(display, collapsed)
        elif kind is LineKind.UNRECOGNIZED:
            self.logger.warn_unrecognized(line, self.line_number)
            return
        elif kind in (LineKind.COMMENT, LineKind.INFO):
            return

        block.state = classify_state(block.state, kind, text)

    def finish_block(self) -> None:
        """Record the current thread entry (if it qualifies) and start a new one."""
        block = self.block
        self.block = ThreadBlock()

        if block.state != UNKNOWN_STATE:
            self.tally.record(block.state)

        if block.state not in self.config.states:
            return

        key = block.folded()
        if key:
            self.aggregator.increment(key)

    def collapse(self, lines: Iterable[str]) -> StackAggregator:
        """
        Process all lines, then finalize the trailing entry.

        Args:
            lines: Input lines, with or without trailing newlines

        Returns:
            The filled stack aggregator
        """
        for line in lines:
            self.feed(line)
        self.finish_block()
        return self.aggregator


def collapse_lines(
    lines: Iterable[str],
    config: Optional[CollapseConfig] = None,
    logger: Optional[DiagnosticsLogger] = None
) -> Tuple[StackAggregator, StateTally]:
    """
    Collapse thread-dump lines.

    Returns:
        Tuple of (stack aggregator, state tally)
    """
    collapser = StackCollapser(config, logger=logger)
    collapser.collapse(lines)
    return collapser.aggregator, collapser.tally


def collapse_text(
    content: str,
    config: Optional[CollapseConfig] = None,
    logger: Optional[DiagnosticsLogger] = None
) -> List[str]:
    """Collapse a thread-dump string into sorted '<stack> <count>' lines."""
    aggregator, _ = collapse_lines(io.StringIO(content), config, logger)
    return aggregator.format_lines()
