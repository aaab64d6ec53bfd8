"""
Custom exceptions for inkwell - clear, actionable error handling.

inkwell uses a hierarchical exception system so callers can tell apart the
failures that mean "run it again later" from the ones that need a human.
Every exception knows the pipeline phase it belongs to, and whether simply
re-running the whole export is a reasonable response.

Exception Hierarchy:
    InkwellError (base)
    ├── ConfigError - Workspace / inkwell.yml problems
    ├── ExportError (phase "export")
    │   ├── AuthenticationFailed - Login rejected, never retried
    │   ├── StepLocatorExhausted - No candidate locator matched for a step
    │   │   └── ExportSurfaceUnreachable - Export controls could not be found
    │   ├── DownloadTimeout - Capture deadline passed with nothing captured
    │   └── ExportArtifactNotFound - No export-like file could be found
    ├── ArchiveError (phase "extract")
    │   └── MalformedArchive - The export artifact cannot be trusted
    ├── LedgerError (phase "state")
    │   ├── LedgerReadError - Persisted state is unreadable
    │   └── LedgerWriteError - Persisted state could not be written
    ├── PublishError (phase "publish") - One entry failed to publish
    └── ReportError (phase "report") - Migration report could not be written

Usage Guidelines:
    - Always chain (`raise MalformedArchive(...) from e`) so the original
      traceback survives for debugging.
    - Errors raised during export or extraction abort the run. PublishError is
      the only per-entry error; the pipeline isolates it and carries on.
"""
from typing import Optional, Sequence


class InkwellError(Exception):
    """Base exception for all inkwell errors."""

    phase: Optional[str] = None
    retryable: bool = False

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        if phase is not None:
            self.phase = phase


class ConfigError(InkwellError):
    """Raised when there's an error in configuration."""

    phase = "config"


class ExportError(InkwellError):
    """Base exception for export automation errors."""

    phase = "export"


class AuthenticationFailed(ExportError):
    """The source service rejected the credentials."""

    retryable = False


class StepLocatorExhausted(ExportError):
    """Every candidate locator for an automation step failed to resolve."""

    retryable = True

    def __init__(self, action: str, candidates: Sequence[str], message: str = ""):
        self.action = action
        self.candidates = list(candidates)
        tried = ", ".join(self.candidates) if self.candidates else "(none)"
        super().__init__(
            message or f"No locator resolved for step '{action}'. Tried: {tried}"
        )


class ExportSurfaceUnreachable(StepLocatorExhausted):
    """The export menu or export control could not be reached."""


class DownloadTimeout(ExportError):
    """The capture deadline passed before an export artifact arrived."""

    retryable = True


class ExportArtifactNotFound(ExportError):
    """Neither network capture nor the scratch directory produced an artifact."""

    retryable = True


class ArchiveError(InkwellError):
    """Base exception for export archive errors."""

    phase = "extract"


class MalformedArchive(ArchiveError):
    """The export artifact has no usable structured data."""

    retryable = False


class LedgerError(InkwellError):
    """Base exception for processing-state errors."""

    phase = "state"


class LedgerReadError(LedgerError):
    """Error reading persisted processing state."""


class LedgerWriteError(LedgerError):
    """Error writing persisted processing state."""


class PublishError(InkwellError):
    """Error turning one entry into output content."""

    phase = "publish"

    def __init__(self, message: str, entry_id: Optional[str] = None):
        super().__init__(message)
        self.entry_id = entry_id


class ReportError(InkwellError):
    """Error writing a migration report."""

    phase = "report"
