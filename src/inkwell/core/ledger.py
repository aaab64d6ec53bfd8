"""
The processing ledger: which entries have already been published, and when.

Every entry that has been turned into output content has a ProcessingRecord
keyed by its id. Comparing a fetched entry's last-modified time with its
record is what makes re-runs safe: unchanged entries are skipped, edited ones
are published again, and new ones are published for the first time.

Records for the current run are staged in memory and written to disk once,
by ``save()``, after every entry has been handled. A run that dies before
then leaves the previous file untouched, and repeating the publish step for
the entries it had already done is harmless.

Example:
    ```python
    ledger = ProcessingLedger(Path("data")).load()
    for entry in entries:
        if ledger.classify(entry) is EntryStatus.UNCHANGED:
            continue
        location = publisher.publish(entry, ledger.get(entry.id))
        ledger.record(entry, location)
    ledger.save()
    ```
"""
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, Optional

from pydantic import ValidationError

from inkwell.messages import get_logger
from inkwell.utility.exceptions import LedgerReadError, LedgerWriteError
from inkwell.utility.state_file import read_json_state, write_json_atomic

from .models import EntryStatus, JournalEntry, ProcessingRecord, utc_now


def classify(entry: JournalEntry, prior: Optional[ProcessingRecord]) -> EntryStatus:
    """
    Compare an entry with its prior record.

    UNCHANGED when the record is at least as recent as the entry, CHANGED when
    the record is older, NEW when there is no record.
    """
    if prior is None:
        return EntryStatus.NEW
    if prior.last_modified >= entry.modified_at:
        return EntryStatus.UNCHANGED
    return EntryStatus.CHANGED


class ProcessingLedger:
    """Persisted map of entry id to ProcessingRecord."""

    FILENAME = "processed.json"

    def __init__(self, state_dir: Path):
        self.path = Path(state_dir) / self.FILENAME
        self._records: Dict[str, ProcessingRecord] = {}
        self._staged: Dict[str, ProcessingRecord] = {}
        self.logger = get_logger("inkwell.ledger")

    def load(self) -> "ProcessingLedger":
        """
        Read the state file. A missing file means nothing has been processed.

        Raises:
            LedgerReadError: If the file exists but cannot be trusted
        """
        data = read_json_state(self.path, LedgerReadError, default={})
        if not isinstance(data, dict):
            raise LedgerReadError(f"{self.path} does not contain a JSON object")

        records = {}
        for entry_id, fields in data.items():
            if not isinstance(fields, dict):
                raise LedgerReadError(
                    f"{self.path}: record {entry_id} is not an object"
                )
            try:
                records[entry_id] = ProcessingRecord(entry_id=entry_id, **fields)
            except (TypeError, ValidationError) as e:
                raise LedgerReadError(
                    f"{self.path}: record {entry_id} is invalid: {e}"
                ) from e

        self._records = records
        self._staged = {}
        self.logger.debug(f"Loaded {len(records)} processing records from {self.path}")
        return self

    def get(self, entry_id: str) -> Optional[ProcessingRecord]:
        """Record for an entry as of the start of this run."""
        return self._records.get(entry_id)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Dict[str, ProcessingRecord]:
        """Records as of the start of this run (staged records excluded)."""
        return dict(self._records)

    @property
    def pending(self) -> Dict[str, ProcessingRecord]:
        """Records staged during this run and not yet saved."""
        return dict(self._staged)

    def classify(self, entry: JournalEntry) -> EntryStatus:
        return classify(entry, self.get(entry.id))

    def record(
        self,
        entry: JournalEntry,
        output_location: str,
        processed_at: Optional[datetime] = None,
    ) -> ProcessingRecord:
        """
        Stage a record for an entry whose output has been fully written.

        Replaces any earlier record for the same entry when saved.
        """
        record = ProcessingRecord(
            entry_id=entry.id,
            last_modified=entry.modified_at,
            output_location=output_location,
            title=entry.title,
            processed_at=processed_at or utc_now(),
        )
        self._staged[entry.id] = record
        return record

    def save(self) -> bool:
        """
        Write committed and staged records to disk in one atomic replace.

        Returns:
            True if the file was written, False if there was nothing to write

        Raises:
            LedgerWriteError: If the file could not be written
        """
        if not self._staged:
            self.logger.debug("No new processing records; state file left as is")
            return False

        merged = {**self._records, **self._staged}
        write_json_atomic(
            self.path,
            {entry_id: record.to_state() for entry_id, record in merged.items()},
            LedgerWriteError,
        )
        self.logger.info(
            f"Saved {len(self._staged)} new or updated records "
            f"({len(merged)} total) to {self.logger.path(str(self.path))}"
        )
        self._records = merged
        self._staged = {}
        return True
