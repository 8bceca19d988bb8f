"""
jstack-collapse - fold Java thread dumps into flame-graph input.

A poor man's Java profiler: append the output of many jstack runs to a file,
collapse it into one line per unique RUNNABLE call path with an occurrence
count, and render the result with a flame-graph tool.
"""

__version__ = "0.1.0"

from .collapser import (
    StackAggregator,
    StackCollapser,
    StateTally,
    ThreadBlock,
    collapse_lines,
    collapse_text,
)
from .config import CollapseConfig
from .frames import CollapsePattern, FrameTransformer, shorten_package
from .lines import Line, LineKind, classify_line
from .states import STATE_RULES, StateRule, UNKNOWN_STATE, classify_state

__all__ = [
    # Core
    "StackCollapser",
    "StackAggregator",
    "StateTally",
    "ThreadBlock",
    "collapse_lines",
    "collapse_text",
    # Configuration
    "CollapseConfig",
    # Building blocks
    "CollapsePattern",
    "FrameTransformer",
    "shorten_package",
    "Line",
    "LineKind",
    "classify_line",
    "STATE_RULES",
    "StateRule",
    "UNKNOWN_STATE",
    "classify_state",
]
