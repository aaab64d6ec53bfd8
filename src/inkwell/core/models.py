"""
Data model shared by the export, sync, and publishing stages.

All timestamps are timezone-aware UTC. Naive timestamps read from exports or
state files are taken to already be in UTC.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)


def ensure_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EntryStatus(str, Enum):
    """How an entry compares with what has already been processed."""

    NEW = "new"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class JournalStage(str, Enum):
    """Editorial stage of an entry in the draft -> published workflow."""

    DRAFT = "draft"
    PROCESSING = "processing"
    PUBLISHED = "published"


class Credentials(BaseModel):
    """Login details for the journaling service. The passphrase never prints."""

    model_config = ConfigDict(frozen=True)

    email: str = Field(..., min_length=1)
    password: SecretStr
    login_url: str = "https://dayone.me/login"

    def __repr__(self) -> str:
        return f"Credentials(email={self.email!r}, password='**********')"

    __str__ = __repr__


class Attachment(BaseModel):
    """A photo or file attached to an entry."""

    identifier: str
    caption: Optional[str] = None


class JournalEntry(BaseModel):
    """
    One entry from a journal export.

    ``modified_at`` falls back to ``created_at`` when the export leaves it out.
    """

    id: str = Field(..., min_length=1)
    title: Optional[str] = None
    created_at: datetime
    modified_at: Optional[datetime] = None
    text: str = ""
    tags: List[str] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    journal: Optional[str] = None

    @field_validator("created_at", "modified_at")
    @classmethod
    def normalize_timestamp(cls, v):
        if v is None:
            return v
        return ensure_utc(v)

    @model_validator(mode="after")
    def default_modified_at(self):
        if self.modified_at is None:
            self.modified_at = self.created_at
        return self

    @property
    def label(self) -> str:
        """Human-readable name for logs: the title, or the id when untitled."""
        return self.title or self.id


class ProcessingRecord(BaseModel):
    """
    Marker that an entry has been turned into output content.

    Accepts both snake_case keys and the camelCase keys used by older state
    files (``lastModified``, ``postPath``, ``processedAt``).
    """

    entry_id: str
    last_modified: datetime = Field(
        validation_alias=AliasChoices("last_modified", "lastModified")
    )
    output_location: str = Field(
        validation_alias=AliasChoices("output_location", "postPath")
    )
    title: Optional[str] = None
    processed_at: datetime = Field(
        validation_alias=AliasChoices("processed_at", "processedAt")
    )

    @field_validator("last_modified", "processed_at")
    @classmethod
    def normalize_timestamp(cls, v):
        return ensure_utc(v)

    def to_state(self) -> Dict[str, Optional[str]]:
        """Serialise for processed.json (the entry id is the key, not a field)."""
        return {
            "last_modified": self.last_modified.isoformat(),
            "output_location": self.output_location,
            "title": self.title,
            "processed_at": self.processed_at.isoformat(),
        }


class JournalSnapshot(BaseModel):
    """The entry ids observed in one journal at one point in time."""

    model_config = ConfigDict(frozen=True)

    journal: str
    entry_ids: Tuple[str, ...] = ()
    captured_at: datetime = Field(default_factory=utc_now)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self.entry_ids

    def __len__(self) -> int:
        return len(self.entry_ids)


class MigrationItem(BaseModel):
    """One entry waiting to be moved to the published journal."""

    model_config = ConfigDict(frozen=True)

    entry_id: str
    title: Optional[str] = None


class MigrationRequest(BaseModel):
    """A batch of already-published entries still sitting in the draft journal."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime
    source_journal: str
    target_journal: Optional[str] = None
    items: Tuple[MigrationItem, ...]

    @property
    def entry_ids(self) -> List[str]:
        return [item.entry_id for item in self.items]


class SyncResult(BaseModel):
    """
    Everything the synchronizer worked out in one pass.

    ``migration`` is None when nothing qualifies; it is never an empty batch.
    """

    model_config = ConfigDict(frozen=True)

    draft: JournalSnapshot
    published: Optional[JournalSnapshot] = None
    new_entries: Tuple[JournalEntry, ...] = ()
    migration: Optional[MigrationRequest] = None
    stages: Dict[str, JournalStage] = Field(default_factory=dict)

    def stage_of(self, entry_id: str) -> Optional[JournalStage]:
        return self.stages.get(entry_id)


class EntryOutcome(BaseModel):
    """What happened to one extracted entry during a run."""

    entry_id: str
    title: Optional[str] = None
    status: str
    output_location: Optional[str] = None
    error: Optional[str] = None


class RunResult(BaseModel):
    """Outcome of a completed pipeline run."""

    run_id: str
    started_at: datetime
    finished_at: datetime
    archive: str
    outcomes: List[EntryOutcome] = Field(default_factory=list)
    sync: Optional[SyncResult] = None
    report_path: Optional[str] = None
    state_written: bool = False

    def count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def failures(self) -> List[EntryOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "failed"]

    @property
    def published(self) -> List[EntryOutcome]:
        return [
            outcome
            for outcome in self.outcomes
            if outcome.status in (EntryStatus.NEW.value, EntryStatus.CHANGED.value)
        ]
