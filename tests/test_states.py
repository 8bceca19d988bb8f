"""
Tests for thread state classification rules.
"""

import re
import unittest

from jstack_collapse.lines import LineKind
from jstack_collapse.states import (
    BACKGROUND, NETWORK, NETWORK_WAITING, RUNNABLE, UNKNOWN_STATE, WAITING,
    StateRule, classify_state
)


# ============================================================================
# Explicit Declarations
# ============================================================================

class TestDeclaredState(unittest.TestCase):
    """Gated assignment from java.lang.Thread.State and jstack -F headers."""

    def test_declaration_sets_unknown_state(self):
        self.assertEqual(classify_state(UNKNOWN_STATE, LineKind.THREAD_STATE, "RUNNABLE"), RUNNABLE)
        self.assertEqual(classify_state(UNKNOWN_STATE, LineKind.THREAD_STATE, "TIMED_WAITING"), "TIMED_WAITING")

    def test_declaration_does_not_override(self):
        self.assertEqual(classify_state(BACKGROUND, LineKind.THREAD_STATE, "RUNNABLE"), BACKGROUND)
        self.assertEqual(classify_state(WAITING, LineKind.THREAD_STATE, "RUNNABLE"), WAITING)

    def test_native_state_corrections(self):
        expected = {
            "BLOCKED": WAITING,
            "IN_JAVA": RUNNABLE,
            "IN_NATIVE": RUNNABLE,
            "IN_NATIVE_TRANS": RUNNABLE,
            "IN_VM": RUNNABLE,
            "UNINITIALIZED": "UNINITIALIZED",
        }
        for token, state in expected.items():
            self.assertEqual(
                classify_state(UNKNOWN_STATE, LineKind.NATIVE_THREAD_STATE, token), state, token
            )

    def test_native_state_is_gated(self):
        self.assertEqual(classify_state(RUNNABLE, LineKind.NATIVE_THREAD_STATE, "BLOCKED"), RUNNABLE)


# ============================================================================
# Unconditional Overrides
# ============================================================================

class TestThreadNameCues(unittest.TestCase):
    """JVM housekeeping threads are BACKGROUND."""

    def test_background_threads(self):
        for name in (
            "C2 CompilerThread0",
            "C1 CompilerThread3",
            "Surrogate Locker Thread (Concurrent GC)",
            "Signal Dispatcher",
            "Service Thread",
            "Attach Listener",
            "DestroyJavaVM",
        ):
            self.assertEqual(classify_state(UNKNOWN_STATE, LineKind.THREAD_HEADER, name), BACKGROUND, name)
            self.assertEqual(classify_state(RUNNABLE, LineKind.THREAD_HEADER, name), BACKGROUND, name)

    def test_application_thread_unchanged(self):
        self.assertEqual(classify_state(UNKNOWN_STATE, LineKind.THREAD_HEADER, "Worker"), UNKNOWN_STATE)
        self.assertEqual(classify_state(RUNNABLE, LineKind.THREAD_HEADER, "pool-1-thread-1"), RUNNABLE)


class TestFrameCues(unittest.TestCase):
    """Frames revealing idle or network activity."""

    def test_epoll_wait(self):
        state = classify_state(RUNNABLE, LineKind.FRAME, "sun.nio.ch.EPollArrayWrapper.epollWait")
        self.assertEqual(state, WAITING)

    def test_socket_accept(self):
        self.assertEqual(
            classify_state(RUNNABLE, LineKind.FRAME, "java.net.PlainSocketImpl.socketAccept"),
            NETWORK_WAITING
        )
        self.assertEqual(
            classify_state(RUNNABLE, LineKind.FRAME, "sun.nio.ch.ServerSocketChannelImpl.accept0"),
            NETWORK_WAITING
        )

    def test_socket_read(self):
        self.assertEqual(
            classify_state(RUNNABLE, LineKind.FRAME, "java.net.SocketInputStream.socketRead0"),
            NETWORK
        )
        self.assertEqual(
            classify_state(RUNNABLE, LineKind.FRAME, "java.net.PlainDatagramSocketImpl.receive0"),
            NETWORK
        )

    def test_patterns_are_anchored_at_end(self):
        self.assertEqual(
            classify_state(RUNNABLE, LineKind.FRAME, "java.net.SocketInputStream.socketRead0Wrapper"),
            RUNNABLE
        )

    def test_plain_frame_unchanged(self):
        self.assertEqual(
            classify_state(RUNNABLE, LineKind.FRAME, "java.net.SocketInputStream.read"),
            RUNNABLE
        )

    def test_frame_cue_overrides_background(self):
        state = classify_state(BACKGROUND, LineKind.FRAME, "sun.nio.ch.EPollArrayWrapper.epollWait")
        self.assertEqual(state, WAITING)

    def test_last_frame_cue_wins(self):
        state = UNKNOWN_STATE
        state = classify_state(state, LineKind.THREAD_STATE, "RUNNABLE")
        state = classify_state(state, LineKind.FRAME, "java.net.SocketInputStream.socketRead0")
        state = classify_state(state, LineKind.FRAME, "sun.nio.ch.EPollArrayWrapper.epollWait")
        self.assertEqual(state, WAITING)


class TestRuleTable(unittest.TestCase):
    """Rule evaluation independent of the default table."""

    def test_custom_rules(self):
        rules = [StateRule(LineKind.FRAME, re.compile(r'Thread\.sleep$'), "SLEEPING")]
        self.assertEqual(classify_state(RUNNABLE, LineKind.FRAME, "java.lang.Thread.sleep", rules), "SLEEPING")
        # Default cues are not consulted
        self.assertEqual(
            classify_state(RUNNABLE, LineKind.FRAME, "sun.nio.ch.EPollArrayWrapper.epollWait", rules),
            RUNNABLE
        )

    def test_rules_only_apply_to_their_line_kind(self):
        # A thread named after a frame cue is not WAITING
        self.assertEqual(classify_state(RUNNABLE, LineKind.THREAD_HEADER, "epollWait"), RUNNABLE)

    def test_missing_text(self):
        self.assertEqual(classify_state(RUNNABLE, LineKind.INFO, None), RUNNABLE)


if __name__ == "__main__":
    unittest.main()
