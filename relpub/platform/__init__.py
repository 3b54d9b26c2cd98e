"""Platform helpers: subprocess execution."""

from .process import ProcessError, format_command, run, run_streaming, run_unless_dry

__all__ = ["ProcessError", "format_command", "run", "run_streaming", "run_unless_dry"]
