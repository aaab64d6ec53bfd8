"""
Tests for the draft -> processing -> published synchronizer.
"""
import json
from datetime import datetime, timezone

import pytest

from inkwell.core.models import (
    JournalEntry,
    JournalSnapshot,
    JournalStage,
    MigrationItem,
    MigrationRequest,
    ProcessingRecord,
)
from inkwell.core.synchronizer import JournalSynchronizer, SnapshotStore, take_snapshot
from inkwell.utility.exceptions import LedgerReadError

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _entry(entry_id, title=None):
    return JournalEntry(id=entry_id, title=title, created_at="2024-01-01T00:00:00Z")


def _record(entry_id, title=None):
    return ProcessingRecord(
        entry_id=entry_id,
        last_modified="2024-01-01T00:00:00Z",
        output_location=f"posts/{entry_id}.md",
        title=title,
        processed_at="2024-01-02T00:00:00Z",
    )


@pytest.fixture
def synchronizer():
    return JournalSynchronizer("Blog Public", "Blog Live", workspace_name="test-blog")


class TestTakeSnapshot:
    def test_deduplicates_in_order(self):
        snapshot = take_snapshot("Blog", [_entry("B"), _entry("A"), _entry("B")], NOW)
        assert snapshot.entry_ids == ("B", "A")
        assert snapshot.captured_at == NOW


class TestSynchronize:
    """Test stages and migration requests."""

    def test_published_entries_are_not_migrated(self, synchronizer):
        published = JournalSnapshot(journal="Blog Live", entry_ids=("B",))
        result = synchronizer.synchronize(
            [_entry("A", "One"), _entry("B", "Two")],
            {"A": _record("A"), "B": _record("B")},
            published,
            now=NOW,
        )

        assert result.migration.entry_ids == ["A"]
        assert result.migration.items[0].title == "One"
        assert result.migration.source_journal == "Blog Public"
        assert result.migration.target_journal == "Blog Live"
        assert result.migration.created_at == NOW
        assert result.stage_of("A") is JournalStage.PROCESSING
        assert result.stage_of("B") is JournalStage.PUBLISHED

    def test_new_entries_stay_draft(self, synchronizer):
        result = synchronizer.synchronize(
            [_entry("A"), _entry("N")], {"A": _record("A")}
        )

        assert [e.id for e in result.new_entries] == ["N"]
        assert result.stage_of("N") is JournalStage.DRAFT
        assert result.migration.entry_ids == ["A"]

    def test_no_migration_when_nothing_qualifies(self, synchronizer):
        published = JournalSnapshot(journal="Blog Live", entry_ids=("A",))
        result = synchronizer.synchronize(
            [_entry("A"), _entry("N")], {"A": _record("A")}, published
        )
        assert result.migration is None

    def test_empty_draft(self, synchronizer):
        result = synchronizer.synchronize([], {"A": _record("A")})
        assert result.migration is None
        assert result.draft.entry_ids == ()

    def test_without_published_snapshot_records_decide(self, synchronizer):
        result = synchronizer.synchronize(
            [_entry("A"), _entry("B")], {"A": _record("A"), "B": _record("B")}
        )
        assert result.published is None
        assert result.migration.entry_ids == ["A", "B"]

    def test_title_falls_back_to_record(self, synchronizer):
        result = synchronizer.synchronize([_entry("A")], {"A": _record("A", "Saved")})
        assert result.migration.items[0].title == "Saved"

    def test_duplicates_listed_once(self, synchronizer):
        result = synchronizer.synchronize(
            [_entry("A"), _entry("A")], {"A": _record("A")}
        )
        assert result.migration.entry_ids == ["A"]

    def test_request_id_is_stable(self, synchronizer):
        args = ([_entry("A")], {"A": _record("A")})
        first = synchronizer.synchronize(*args, now=NOW).migration
        second = synchronizer.synchronize(*args, now=NOW).migration
        assert first.id == second.id


def _request(*ids):
    return MigrationRequest(
        id="req",
        created_at=NOW,
        source_journal="Blog Public",
        items=tuple(MigrationItem(entry_id=i) for i in ids),
    )


class TestSnapshotStore:
    """Test journals.json persistence."""

    def test_round_trip(self, temp_dir):
        store = SnapshotStore(temp_dir).load()
        store.update(
            JournalSnapshot(journal="Blog Live", entry_ids=("A",), captured_at=NOW)
        )
        store.mark_reported(_request("B", "C"))
        store.save()

        loaded = SnapshotStore(temp_dir).load()
        assert loaded.get("Blog Live").entry_ids == ("A",)
        assert loaded.get("Blog Live").captured_at == NOW
        assert loaded.already_reported(_request("C", "B"))
        assert not loaded.already_reported(_request("C"))

    def test_nothing_reported_yet(self, temp_dir):
        store = SnapshotStore(temp_dir).load()
        assert store.get("Blog Live") is None
        assert not store.already_reported(_request("A"))

    def test_mark_reported_none_clears(self, temp_dir):
        store = SnapshotStore(temp_dir).load()
        store.mark_reported(_request("A"))
        store.mark_reported(None)
        assert store.last_reported == []

    def test_corrupt(self, temp_dir):
        (temp_dir / "journals.json").write_text(
            json.dumps({"snapshots": {"x": {"entry_ids": []}}})
        )
        with pytest.raises(LedgerReadError):
            SnapshotStore(temp_dir).load()
