"""
Tests for the shared data model.
"""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from inkwell.core.models import (
    Credentials,
    EntryOutcome,
    JournalEntry,
    JournalSnapshot,
    ProcessingRecord,
    RunResult,
    ensure_utc,
)


class TestEnsureUtc:
    """Timestamps always end up aware and in UTC."""

    def test_naive_is_taken_as_utc(self):
        value = ensure_utc(datetime(2024, 1, 15, 10, 30))
        assert value.tzinfo == timezone.utc
        assert value.hour == 10

    def test_offset_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        value = ensure_utc(datetime(2024, 1, 15, 12, 0, tzinfo=plus_two))
        assert value == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class TestCredentials:
    """Test the password never shows up in text form."""

    def test_repr_masks_password(self):
        creds = Credentials(email="writer@example.com", password="hunter2")
        assert "hunter2" not in repr(creds)
        assert "hunter2" not in str(creds)
        assert creds.password.get_secret_value() == "hunter2"

    def test_empty_email_rejected(self):
        with pytest.raises(ValidationError):
            Credentials(email="", password="x")


class TestJournalEntry:
    """Test entry parsing defaults."""

    def test_modified_defaults_to_created(self):
        entry = JournalEntry(id="A", created_at="2024-01-15T10:30:00Z")
        assert entry.modified_at == entry.created_at

    def test_timestamps_normalized(self):
        entry = JournalEntry(
            id="A",
            created_at="2024-01-15T10:30:00",
            modified_at="2024-01-15T12:30:00+02:00",
        )
        assert entry.created_at.tzinfo == timezone.utc
        assert entry.modified_at == entry.created_at

    def test_label_prefers_title(self):
        assert JournalEntry(id="A", title="Hi", created_at="2024-01-01").label == "Hi"
        assert JournalEntry(id="A", created_at="2024-01-01").label == "A"


class TestProcessingRecord:
    """Test state records in both key styles."""

    def test_accepts_legacy_keys(self):
        record = ProcessingRecord(
            entry_id="A",
            lastModified="2024-01-16T08:00:00Z",
            postPath="posts/2024/01/first-post.md",
            processedAt="2024-01-16T09:00:00Z",
        )
        assert record.output_location == "posts/2024/01/first-post.md"
        assert record.last_modified.tzinfo == timezone.utc

    def test_to_state_uses_snake_case(self):
        record = ProcessingRecord(
            entry_id="A",
            last_modified="2024-01-16T08:00:00Z",
            output_location="posts/a.md",
            title="First",
            processed_at="2024-01-16T09:00:00Z",
        )
        state = record.to_state()
        assert state == {
            "last_modified": "2024-01-16T08:00:00+00:00",
            "output_location": "posts/a.md",
            "title": "First",
            "processed_at": "2024-01-16T09:00:00+00:00",
        }
        assert ProcessingRecord(entry_id="A", **state) == record


class TestJournalSnapshot:
    def test_membership(self):
        snapshot = JournalSnapshot(journal="Blog Live", entry_ids=("A", "B"))
        assert "A" in snapshot
        assert "C" not in snapshot
        assert len(snapshot) == 2


class TestRunResult:
    """Test outcome helpers."""

    def test_counts(self):
        now = datetime.now(timezone.utc)
        result = RunResult(
            run_id="r",
            started_at=now,
            finished_at=now,
            archive="export.json",
            outcomes=[
                EntryOutcome(entry_id="A", status="new"),
                EntryOutcome(entry_id="B", status="changed"),
                EntryOutcome(entry_id="C", status="unchanged"),
                EntryOutcome(entry_id="D", status="failed", error="boom"),
            ],
        )
        assert result.count("unchanged") == 1
        assert [o.entry_id for o in result.published] == ["A", "B"]
        assert [o.entry_id for o in result.failures] == ["D"]
