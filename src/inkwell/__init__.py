"""
Incremental journal-to-site publishing with a draft -> published workflow.
"""
from .core import (
    ExportDriver,
    JournalEntry,
    JournalSynchronizer,
    MigrationReportGenerator,
    Pipeline,
    ProcessingLedger,
    Publisher,
    Workspace,
)

# Publisher implementations register themselves on import
from .core.publisher import MarkdownPublisher  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "ExportDriver",
    "JournalEntry",
    "JournalSynchronizer",
    "MigrationReportGenerator",
    "Pipeline",
    "ProcessingLedger",
    "Publisher",
    "Workspace",
]
