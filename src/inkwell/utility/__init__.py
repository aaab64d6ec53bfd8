"""
Utility functions and classes for inkwell.
"""
from .exceptions import (
    ArchiveError,
    AuthenticationFailed,
    ConfigError,
    DownloadTimeout,
    ExportArtifactNotFound,
    ExportError,
    ExportSurfaceUnreachable,
    InkwellError,
    LedgerError,
    LedgerReadError,
    LedgerWriteError,
    MalformedArchive,
    PublishError,
    ReportError,
    StepLocatorExhausted,
)

__all__ = [
    "InkwellError",
    "ConfigError",
    "ExportError",
    "AuthenticationFailed",
    "StepLocatorExhausted",
    "ExportSurfaceUnreachable",
    "DownloadTimeout",
    "ExportArtifactNotFound",
    "ArchiveError",
    "MalformedArchive",
    "LedgerError",
    "LedgerReadError",
    "LedgerWriteError",
    "PublishError",
    "ReportError",
]
