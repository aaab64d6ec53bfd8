"""
Error formatting for inkwell - friendly, helpful error messages.

ErrorFormatter turns the exception that stopped a run into one line saying
what happened, which phase it happened in, and what to try next.
"""
from typing import Optional, Tuple

from inkwell.utility.exceptions import (
    AuthenticationFailed,
    ConfigError,
    DownloadTimeout,
    ExportArtifactNotFound,
    InkwellError,
    LedgerError,
    MalformedArchive,
    StepLocatorExhausted,
)


class ErrorFormatter:
    """Formats errors into friendly, helpful messages."""

    @staticmethod
    def format_error(
        error: Exception, verbose: bool = False
    ) -> Tuple[str, Optional[str]]:
        """
        Format an error into a friendly message and optional suggestion.

        Args:
            error: The exception to format
            verbose: If True, include the exception type in the message

        Returns:
            Tuple of (friendly_message, suggestion)
        """
        phase = getattr(error, "phase", None) or "run"
        detail = str(error) or type(error).__name__
        if verbose:
            detail = f"{type(error).__name__}: {detail}"
        friendly_msg = f"The {phase} phase failed: {detail}"

        if isinstance(error, AuthenticationFailed):
            suggestion = (
                "The service rejected the login. Check DAYONE_EMAIL and "
                "DAYONE_PASSWORD; retrying with the same credentials will not help."
            )
        elif isinstance(error, StepLocatorExhausted):
            suggestion = (
                "The web interface has probably changed. Re-running may work, but "
                "if this keeps happening add working locators for step "
                f"'{error.action}' under 'selectors:' in inkwell.yml. "
                "Screenshots are in the diagnostics directory."
            )
        elif isinstance(error, (DownloadTimeout, ExportArtifactNotFound)):
            suggestion = (
                "The export did not arrive. This is usually transient; "
                "it is safe to re-run the whole export."
            )
        elif isinstance(error, MalformedArchive):
            suggestion = (
                "The exported archive could not be trusted. Inspect the file in "
                "the scratch directory before re-running; nothing was published."
            )
        elif isinstance(error, LedgerError):
            suggestion = (
                "The processed-state file could not be used. Restore it from "
                "version control or a backup; it was not modified."
            )
        elif isinstance(error, ConfigError):
            suggestion = (
                "Check inkwell.yml for syntax errors, missing fields, or unset "
                "environment variables. Use 'inkwell debug' to validate."
            )
        elif isinstance(error, InkwellError):
            suggestion = "Check the log in logs/inkwell.log for details."
        else:
            suggestion = (
                "Check the error message above for details, "
                "or run with --verbose for more technical details."
            )

        return (friendly_msg, suggestion)

    @staticmethod
    def format_with_stack_trace(error: Exception) -> str:
        """
        Format error with full stack trace for verbose mode.

        Args:
            error: The exception to format

        Returns:
            Formatted error with stack trace
        """
        import traceback

        tb_lines = traceback.format_exception(type(error), error, error.__traceback__)

        lines = [
            f"Error Type: {type(error).__name__}",
            f"Error Message: {error}",
            "",
            "Full Traceback:",
            "─" * 60,
        ]
        lines.extend(tb_lines)
        lines.append("─" * 60)

        return "\n".join(lines)
