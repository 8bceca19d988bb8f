"""
Tests for the rich diagnostics logger.
"""

import io
import unittest

from rich.console import Console

from jstack_collapse.logger import DiagnosticsLogger


def make_logger(**kwargs):
    console = Console(file=io.StringIO(), width=120, highlight=False)
    return DiagnosticsLogger(console=console, **kwargs)


class TestDiagnosticsLogger(unittest.TestCase):

    def test_warning_displayed_and_recorded(self):
        logger = make_logger()
        logger.warn_unrecognized("Found one Java-level deadlock:", 7)

        self.assertEqual(logger.warning_count, 1)
        self.assertEqual(logger.diagnostics[0].line_number, 7)
        self.assertEqual(logger.diagnostics[0].level, "warning")
        self.assertIn("Unrecognized line: Found one Java-level deadlock:", logger.console.file.getvalue())

    def test_markup_is_not_interpreted(self):
        logger = make_logger()
        logger.warn_unrecognized("[bold]not markup[/bold]")
        self.assertIn("[bold]not markup[/bold]", logger.console.file.getvalue())

    def test_long_lines_are_truncated(self):
        logger = make_logger(max_line_length=40)
        logger.warn_unrecognized("x" * 200)

        output = logger.console.file.getvalue()
        self.assertIn("TRUNCATED", output)
        # The recorded message keeps the full line
        self.assertEqual(logger.diagnostics[0].message, "Unrecognized line: " + "x" * 200)

    def test_quiet(self):
        logger = make_logger(quiet=True)
        logger.warn_unrecognized("garbage")
        self.assertEqual(logger.console.file.getvalue(), "")
        self.assertEqual(logger.warning_count, 1)

    def test_stored_warnings_are_capped(self):
        logger = make_logger(quiet=True, max_diagnostics=3)
        for i in range(10):
            logger.warn_unrecognized(f"garbage {i}", i + 1)

        self.assertEqual(logger.warning_count, 10)
        self.assertEqual(len(logger.diagnostics), 3)
        self.assertEqual(logger.diagnostics[-1].message, "Unrecognized line: garbage 2")

        logger.clear()
        self.assertEqual(logger.warning_count, 0)

    def test_errors_ignore_quiet(self):
        logger = make_logger(quiet=True)
        logger.error("Cannot read dump.txt")
        self.assertIn("ERROR: Cannot read dump.txt", logger.console.file.getvalue())
        self.assertEqual(logger.warning_count, 0)

    def test_print_stats(self):
        logger = make_logger(quiet=True)
        logger.print_stats(["RUNNABLE: 3", "WAITING: 1"])
        self.assertEqual(logger.console.file.getvalue().splitlines(), ["RUNNABLE: 3", "WAITING: 1"])

    def test_clear(self):
        logger = make_logger()
        logger.warn_unrecognized("garbage")
        logger.clear()
        self.assertEqual(logger.diagnostics, [])


if __name__ == "__main__":
    unittest.main()
