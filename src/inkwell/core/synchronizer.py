"""
Three-journal synchronizer: draft -> processing -> published.

Entries are written in a draft journal. Once an entry has been published to
the site it should be moved, by hand, into the published journal, because the
journaling service has no API for moving entries. The synchronizer works out
which entries are in that in-between "processing" stage and turns them into a
MigrationRequest: a to-do list for the person doing the moving.

An entry qualifies for migration when it is in the draft journal, it already
has a ProcessingRecord, and it is not known to be in the published journal.
When no snapshot of the published journal is available the last condition is
skipped. On a fresh draft journal with pre-existing records that can flag
entries which were never published by inkwell; the rule is kept as is so that
no published entry is ever silently dropped from the to-do list.
"""
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Set

from pydantic import ValidationError

from inkwell.messages import get_logger
from inkwell.utility.exceptions import LedgerReadError, LedgerWriteError
from inkwell.utility.run_id import generate_run_id
from inkwell.utility.state_file import read_json_state, write_json_atomic

from .models import (
    JournalEntry,
    JournalSnapshot,
    JournalStage,
    MigrationItem,
    MigrationRequest,
    ProcessingRecord,
    SyncResult,
    utc_now,
)


def take_snapshot(
    journal: str,
    entries: Sequence[JournalEntry],
    captured_at: Optional[datetime] = None,
) -> JournalSnapshot:
    """Snapshot the ids of ``entries`` (first occurrence order, no repeats)."""
    seen: Dict[str, None] = {}
    for entry in entries:
        seen.setdefault(entry.id, None)
    return JournalSnapshot(
        journal=journal,
        entry_ids=tuple(seen),
        captured_at=captured_at or utc_now(),
    )


class JournalSynchronizer:
    """Computes a SyncResult from the draft journal and the processing records."""

    def __init__(
        self,
        draft_journal: str,
        published_journal: Optional[str] = None,
        workspace_name: str = "inkwell",
    ):
        self.draft_journal = draft_journal
        self.published_journal = published_journal
        self.workspace_name = workspace_name
        self.logger = get_logger("inkwell.synchronizer")

    def synchronize(
        self,
        draft_entries: Sequence[JournalEntry],
        records: Mapping[str, ProcessingRecord],
        published: Optional[JournalSnapshot] = None,
        now: Optional[datetime] = None,
    ) -> SyncResult:
        """
        Work out new entries, editorial stages, and pending migrations.

        Args:
            draft_entries: Entries extracted for the draft journal, in export order
            records: Processing records as of the start of the run
            published: Snapshot of the published journal, or None if unavailable
            now: Timestamp for snapshots and the request (default: current time)

        Returns:
            SyncResult whose ``migration`` is None when nothing qualifies
        """
        now = now or utc_now()
        draft = take_snapshot(self.draft_journal, draft_entries, now)

        if published is None:
            self.logger.debug(
                "Published journal snapshot unavailable; "
                "migration rests on processing records alone"
            )

        stages: Dict[str, JournalStage] = {}
        if published is not None:
            for entry_id in published.entry_ids:
                stages[entry_id] = JournalStage.PUBLISHED

        new_entries: List[JournalEntry] = []
        items: List[MigrationItem] = []
        seen: Set[str] = set()
        for entry in draft_entries:
            if entry.id in seen:
                continue
            seen.add(entry.id)

            record = records.get(entry.id)
            if record is None:
                stages[entry.id] = JournalStage.DRAFT
                new_entries.append(entry)
                continue
            if published is not None and entry.id in published:
                continue

            stages[entry.id] = JournalStage.PROCESSING
            items.append(
                MigrationItem(entry_id=entry.id, title=entry.title or record.title)
            )

        migration = self._build_request(items, now) if items else None
        if migration is not None:
            self.logger.info(
                f"{len(items)} published entries are still in "
                f"'{self.draft_journal}' and need moving"
            )

        return SyncResult(
            draft=draft,
            published=published,
            new_entries=tuple(new_entries),
            migration=migration,
            stages=stages,
        )

    def _build_request(
        self, items: List[MigrationItem], now: datetime
    ) -> MigrationRequest:
        request_id = generate_run_id(
            [self.workspace_name, self.draft_journal, now.isoformat()]
            + [item.entry_id for item in items]
        )
        return MigrationRequest(
            id=request_id,
            created_at=now,
            source_journal=self.draft_journal,
            target_journal=self.published_journal,
            items=tuple(items),
        )


class SnapshotStore:
    """
    journals.json: the latest snapshot per journal and the last reported batch.

    Written at the same point as the processing ledger, after a successful run.
    """

    FILENAME = "journals.json"

    def __init__(self, state_dir: Path):
        self.path = Path(state_dir) / self.FILENAME
        self.snapshots: Dict[str, JournalSnapshot] = {}
        self.last_reported: List[str] = []
        self.logger = get_logger("inkwell.synchronizer")

    def load(self) -> "SnapshotStore":
        """
        Raises:
            LedgerReadError: If the file exists but cannot be trusted
        """
        data = read_json_state(self.path, LedgerReadError, default={})
        if not isinstance(data, dict):
            raise LedgerReadError(f"{self.path} does not contain a JSON object")
        try:
            self.snapshots = {
                name: JournalSnapshot(**snapshot)
                for name, snapshot in (data.get("snapshots") or {}).items()
            }
        except (TypeError, ValidationError) as e:
            raise LedgerReadError(f"{self.path}: invalid snapshot: {e}") from e
        self.last_reported = [str(i) for i in data.get("last_reported") or []]
        return self

    def get(self, journal: str) -> Optional[JournalSnapshot]:
        return self.snapshots.get(journal)

    def update(self, snapshot: JournalSnapshot) -> None:
        self.snapshots[snapshot.journal] = snapshot

    def already_reported(self, request: MigrationRequest) -> bool:
        """True when the same set of entries was the last batch reported."""
        return bool(self.last_reported) and set(request.entry_ids) == set(
            self.last_reported
        )

    def mark_reported(self, request: Optional[MigrationRequest]) -> None:
        self.last_reported = list(request.entry_ids) if request else []

    def save(self) -> None:
        """
        Raises:
            LedgerWriteError: If the file could not be written
        """
        data = {
            "snapshots": {
                name: snapshot.model_dump(mode="json")
                for name, snapshot in self.snapshots.items()
            },
            "last_reported": self.last_reported,
        }
        write_json_atomic(self.path, data, LedgerWriteError)
