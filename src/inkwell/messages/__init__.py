"""
Message utilities for inkwell.

This submodule provides messaging utilities for inkwell:
- Logger: Human-readable output formatting with colors
- Errors: Friendly error messages with suggestions
- Summary: End-of-run summary formatting
"""
from inkwell.messages.logger import InkwellLogger, get_logger, set_verbose
from inkwell.messages.summary import Summary  # noqa: E402

__all__ = ["InkwellLogger", "get_logger", "set_verbose", "Summary"]
