"""
Line Classification for jstack Captures

Sorts each raw line of a thread-dump stream into a line kind:
- comments and blank separators
- thread headers (quoted thread names)
- explicit thread-state declarations (jstack and jstack -F dialects)
- stack frames
- known informational lines without stack semantics
"""

import re
from enum import Enum
from typing import NamedTuple, Optional


class LineKind(Enum):
    """Kinds of lines found in a thread-dump stream."""
    COMMENT = "comment"
    BLANK = "blank"
    THREAD_HEADER = "thread_header"
    THREAD_STATE = "thread_state"
    NATIVE_THREAD_STATE = "native_thread_state"
    FRAME = "frame"
    INFO = "info"
    UNRECOGNIZED = "unrecognized"


class Line(NamedTuple):
    """A classified line and the text captured from it (if any)."""
    kind: LineKind
    text: Optional[str] = None


# ============================================================================
# Patterns
# ============================================================================

# "Thread-1" #12 prio=5 os_prio=0 tid=0x00007f8a4c000800 nid=0x1a2b runnable
THREAD_HEADER_PATTERN = re.compile(r'^"([^"]*)')

#    java.lang.Thread.State: RUNNABLE
THREAD_STATE_PATTERN = re.compile(r'java\.lang\.Thread\.State: (\S+)')

# Thread 117034: (state = IN_JAVA)
NATIVE_THREAD_STATE_PATTERN = re.compile(r'Thread \d+: \(state = (\S+)\)')

#    at java.net.SocketInputStream.socketRead0(Native Method)
#  - java.util.Arrays.copyOf(java.lang.Object[], int) @bci=21, line=3212 (Compiled frame)
FRAME_PATTERN = re.compile(r'^\s*(?:at|-) ([^\s(]+)\(')

INFO_PATTERNS = [
    re.compile(r'^\s*-'),                # lock annotations, "- None"
    re.compile(r'^2\d\d\d-'),            # capture timestamp
    re.compile(r'^Full thread dump'),
    re.compile(r'^\s*Locked ownable synchronizers:'),
    re.compile(r'^JNI global references:'),
    # jstack -F attach preamble
    re.compile(r'^Attaching to process ID'),
    re.compile(r'^Debugger attached successfully\.'),
    re.compile(r'^(?:Server|Client) compiler detected\.'),
    re.compile(r'^JVM version is'),
    re.compile(r'^Deadlock Detection:'),
    re.compile(r'^No deadlocks found\.'),
    # JDK 11+ thread list header
    re.compile(r'^Threads class SMR info:'),
    re.compile(r'^_java_thread_list='),
    re.compile(r'^0x[0-9a-fA-F]+(?:,\s*0x[0-9a-fA-F]+)*,?\s*$'),
    re.compile(r'^\}\s*$'),
]


def classify_line(line: str) -> Line:
    """
    Classify one line of a thread dump.

    Checks are made in priority order; the first that applies decides the
    kind. The trailing newline should already be removed.

    Args:
        line: Raw input line

    Returns:
        Line with the kind and, for headers, state declarations and frames,
        the captured name, state token or frame signature
    """
    if line.startswith('#'):
        return Line(LineKind.COMMENT)

    if not line.strip():
        return Line(LineKind.BLANK)

    match = THREAD_HEADER_PATTERN.match(line)
    if match:
        return Line(LineKind.THREAD_HEADER, match.group(1))

    match = THREAD_STATE_PATTERN.search(line)
    if match:
        return Line(LineKind.THREAD_STATE, match.group(1))

    match = NATIVE_THREAD_STATE_PATTERN.search(line)
    if match:
        return Line(LineKind.NATIVE_THREAD_STATE, match.group(1))

    match = FRAME_PATTERN.match(line)
    if match:
        return Line(LineKind.FRAME, match.group(1))

    if any(pattern.match(line) for pattern in INFO_PATTERNS):
        return Line(LineKind.INFO)

    return Line(LineKind.UNRECOGNIZED, line)
