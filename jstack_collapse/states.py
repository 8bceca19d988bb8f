"""
Thread State Classification

Infers the execution state of a thread from the textual cues of its
thread-dump entry. Rules are data: an ordered table of StateRule entries,
each bound to the line kind it inspects.

Two kinds of rule exist:
- gated rules only fire while the state is still unknown (explicit
  java.lang.Thread.State / jstack -F declarations)
- unconditional rules fire on every match and overwrite the state
  (JVM housekeeping thread names, idle or network frames)

Because frames are seen leaf first, the last matching frame rule in an entry
decides the final state.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .lines import LineKind


UNKNOWN_STATE = "?"

RUNNABLE = "RUNNABLE"
WAITING = "WAITING"
BACKGROUND = "BACKGROUND"
NETWORK = "NETWORK"
NETWORK_WAITING = "NETWORK_WAITING"

# jstack -F reports VM-internal states; map them onto java.lang.Thread.State
NATIVE_STATE_CORRECTIONS = {
    "BLOCKED": WAITING,
    "IN_JAVA": RUNNABLE,
    "IN_NATIVE": RUNNABLE,
    "IN_NATIVE_TRANS": RUNNABLE,
    "IN_VM": RUNNABLE,
}


@dataclass(frozen=True)
class StateRule:
    """
    One state classification rule.

    Attributes:
        line_kind: Kind of line the rule inspects
        pattern: Pattern searched in the line's captured text
        state: State to assign; None assigns the pattern's first group
        gated: Only apply while the state is still unknown
        corrections: Mapping applied to the captured state token
    """
    line_kind: LineKind
    pattern: re.Pattern
    state: Optional[str] = None
    gated: bool = False
    corrections: Dict[str, str] = field(default_factory=dict)

    def apply(self, current: str, text: str) -> str:
        """Return the state after applying this rule to text."""
        if self.gated and current != UNKNOWN_STATE:
            return current

        match = self.pattern.search(text)
        if match is None:
            return current

        new_state = self.state if self.state is not None else match.group(1)
        return self.corrections.get(new_state, new_state)


def _name_rule(pattern: str) -> StateRule:
    return StateRule(LineKind.THREAD_HEADER, re.compile(pattern), BACKGROUND)


def _frame_rule(pattern: str, state: str) -> StateRule:
    return StateRule(LineKind.FRAME, re.compile(pattern), state)


STATE_RULES: List[StateRule] = [
    # Explicit declarations
    StateRule(LineKind.THREAD_STATE, re.compile(r'(\S+)'), gated=True),
    StateRule(
        LineKind.NATIVE_THREAD_STATE,
        re.compile(r'(\S+)'),
        gated=True,
        corrections=NATIVE_STATE_CORRECTIONS,
    ),

    # JVM housekeeping threads
    _name_rule(r'C. CompilerThread'),
    _name_rule(r'Surrogate Locker Thread'),
    _name_rule(r'Signal Dispatcher'),
    _name_rule(r'Service Thread'),
    _name_rule(r'Attach Listener'),
    _name_rule(r'DestroyJavaVM'),

    # Reported as RUNNABLE but idle in epoll
    _frame_rule(r'epollWait', WAITING),

    # Accepting a socket is waiting, no CPU is used anywhere
    _frame_rule(r'socketAccept$', NETWORK_WAITING),
    _frame_rule(r'Socket.*accept0$', NETWORK_WAITING),

    # CPU used elsewhere, but still used
    _frame_rule(r'SocketImpl.*receive0$', NETWORK),
    _frame_rule(r'socketRead0$', NETWORK),
]


def classify_state(
    current: str,
    line_kind: LineKind,
    text: Optional[str],
    rules: Optional[List[StateRule]] = None
) -> str:
    """
    Compute the state of a thread after seeing one line.

    Every rule bound to line_kind is applied in table order, so when several
    match the last one wins.

    Args:
        current: State before the line (UNKNOWN_STATE for a fresh entry)
        line_kind: Kind of the line
        text: Text captured from the line (thread name, state token, frame
            signature)
        rules: Rule table, defaults to STATE_RULES

    Returns:
        The new state
    """
    if text is None:
        return current

    state = current
    for rule in rules if rules is not None else STATE_RULES:
        if rule.line_kind is line_kind:
            state = rule.apply(state, text)
    return state
