"""
Core components of inkwell.
"""
from .archive import extract
from .exporter import BrowserConfig, ExportDriver
from .ledger import ProcessingLedger, classify
from .models import (
    Credentials,
    EntryStatus,
    JournalEntry,
    JournalSnapshot,
    JournalStage,
    MigrationRequest,
    ProcessingRecord,
    RunResult,
    SyncResult,
)
from .pipeline import Pipeline
from .publisher import MarkdownPublisher, Publisher, PublisherConfig
from .report import MigrationReport, MigrationReportGenerator
from .selectors import DEFAULT_SELECTORS, Resolution, SelectorResolver, SelectorTable
from .synchronizer import JournalSynchronizer, SnapshotStore, take_snapshot
from .workspace import InkwellConfig, Workspace

__all__ = [
    "BrowserConfig",
    "Credentials",
    "DEFAULT_SELECTORS",
    "EntryStatus",
    "ExportDriver",
    "InkwellConfig",
    "JournalEntry",
    "JournalSnapshot",
    "JournalStage",
    "JournalSynchronizer",
    "MarkdownPublisher",
    "MigrationReport",
    "MigrationReportGenerator",
    "MigrationRequest",
    "Pipeline",
    "ProcessingLedger",
    "ProcessingRecord",
    "Publisher",
    "PublisherConfig",
    "Resolution",
    "RunResult",
    "SelectorResolver",
    "SelectorTable",
    "SnapshotStore",
    "SyncResult",
    "Workspace",
    "classify",
    "extract",
    "take_snapshot",
]
