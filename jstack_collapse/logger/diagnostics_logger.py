"""
Diagnostics logger for collapse runs.

Everything that is not folded-stack output (unrecognized line warnings,
state statistics, errors) goes to stderr through a rich console, so stdout
stays a clean flame-graph input.
"""

from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console
from rich.text import Text


@dataclass
class Diagnostic:
    """
    Record of a single diagnostic message.

    Attributes:
        level: 'warning' or 'error'
        message: Message text
        line_number: Input line the message refers to, if any
    """
    level: str
    message: str
    line_number: Optional[int] = None


class DiagnosticsLogger:
    """
    Logger for warnings, statistics and errors of a collapse run.

    Messages are recorded even when quiet, so callers can inspect them
    afterwards; quiet only keeps warnings off the console. Only the first
    max_diagnostics warnings are kept, the rest are only counted.
    """

    def __init__(
        self,
        quiet: bool = False,
        max_line_length: int = 2000,
        max_diagnostics: int = 1000,
        console: Optional[Console] = None
    ):
        """
        Initialize the diagnostics logger.

        Args:
            quiet: Do not display warnings
            max_line_length: Maximum length of echoed input to display
            max_diagnostics: Maximum number of warnings kept in diagnostics
            console: Console to write to, defaults to a stderr console
        """
        self.quiet = quiet
        self.max_line_length = max_line_length
        self.console = console or Console(stderr=True, highlight=False)
        self.max_diagnostics = max_diagnostics
        self.diagnostics: List[Diagnostic] = []
        self._warning_count = 0

    def _truncate(self, text: str) -> str:
        if len(text) <= self.max_line_length:
            return text

        half_length = self.max_line_length // 2
        truncated_chars = len(text) - self.max_line_length
        return (
            f"{text[:half_length]}"
            f" ... [TRUNCATED {truncated_chars} characters] ... "
            f"{text[-half_length:]}"
        )

    def _print(self, text: Text) -> None:
        self.console.print(text, soft_wrap=True)

    @property
    def warning_count(self) -> int:
        return self._warning_count

    def warn_unrecognized(self, line: str, line_number: Optional[int] = None) -> None:
        """
        Report an input line that matched no known line kind.

        Args:
            line: The offending line
            line_number: 1-based position of the line in its input
        """
        message = f"Unrecognized line: {line}"
        self._warning_count += 1
        if self._warning_count <= self.max_diagnostics:
            self.diagnostics.append(Diagnostic("warning", message, line_number))

        if self.quiet:
            return

        self._print(Text(self._truncate(message), style="yellow"))

    def error(self, message: str) -> None:
        """Report a fatal problem; always displayed."""
        self.diagnostics.append(Diagnostic("error", message))
        self._print(Text(f"ERROR: {message}", style="bold red"))

    def print_stats(self, lines: List[str]) -> None:
        """Display state statistics lines ('<state>: <count>'); always displayed."""
        for line in lines:
            self._print(Text(line))

    def clear(self) -> None:
        """Clear all recorded diagnostics."""
        self.diagnostics.clear()
        self._warning_count = 0
