from .diagnostics_logger import Diagnostic, DiagnosticsLogger

__all__ = ["Diagnostic", "DiagnosticsLogger"]
