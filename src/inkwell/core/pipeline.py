"""
Pipeline orchestrates one inkwell run.

A run goes through these phases, in order:

    export   capture the draft journal (and optionally the published one)
    extract  parse the export into entries for the configured journal
    sync     work out editorial stages and pending migrations
    publish  publish new and changed entries, one at a time
    report   write a migration report if there is a new batch to move
    state    save processed.json and journals.json

Any failure outside the publish phase stops the run before state is written,
so a failed run never changes what the previous run left behind. A failure
publishing one entry is logged and listed in the run result; the remaining
entries are still published and the successful ones are still recorded.
"""
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from inkwell.messages import Summary, get_logger
from inkwell.utility.exceptions import InkwellError
from inkwell.utility.run_id import generate_run_id

from .archive import extract
from .exporter import ExportDriver
from .ledger import ProcessingLedger
from .models import (
    EntryOutcome,
    EntryStatus,
    JournalEntry,
    JournalSnapshot,
    RunResult,
    SyncResult,
    utc_now,
)
from .publisher import Publisher
from .report import MigrationReportGenerator
from .synchronizer import JournalSynchronizer, SnapshotStore, take_snapshot
from .workspace import InkwellConfig, Workspace


class Pipeline:
    """
    Runs export -> extract -> sync -> publish -> report -> state.

    Args:
        config: Validated workspace configuration
        root: Directory that relative paths in the configuration are resolved from
        driver: Export driver (default: built from the configuration)
        publisher: Publisher (default: ``Publisher.create`` from the configuration)
    """

    def __init__(
        self,
        config: InkwellConfig,
        root: Path,
        driver: Optional[Any] = None,
        publisher: Optional[Publisher] = None,
    ):
        self.config = config
        self.root = Path(root)
        self.state_dir = self._resolve(config.paths.state_dir)
        self.scratch_dir = self._resolve(config.paths.scratch_dir)
        self.diagnostics_dir = self._resolve(config.paths.diagnostics_dir)
        self.reports_dir = self._resolve(config.paths.reports_dir)

        self.driver = driver or ExportDriver(
            scratch_dir=self.scratch_dir,
            diagnostics_dir=self.diagnostics_dir,
            browser=config.browser,
            selectors=config.selector_table(),
        )
        self.publisher = publisher or Publisher.create(config.publisher, self.root)
        self.synchronizer = JournalSynchronizer(
            draft_journal=config.journals.draft,
            published_journal=config.journals.published,
            workspace_name=config.name,
        )
        self.reports = MigrationReportGenerator(self.reports_dir)

        self.phase: Optional[str] = None
        self.logger = get_logger("inkwell.pipeline")
        self.summary = Summary(logger=self.logger)

    @classmethod
    def from_workspace(cls, workspace: Workspace, **kwargs: Any) -> "Pipeline":
        return cls(workspace.prepare(), workspace.root, **kwargs)

    def _resolve(self, relative: str) -> Path:
        path = Path(relative)
        return path if path.is_absolute() else self.root / path

    async def run(self, archive: Optional[Path] = None) -> RunResult:
        """
        Run the pipeline once.

        Args:
            archive: Use this export instead of running the browser export

        Returns:
            RunResult with one outcome per extracted entry

        Raises:
            InkwellError: For any failure that stops the run; ``phase`` on the
                pipeline (and usually on the error) names where it happened
        """
        started_at = utc_now()
        start = time.monotonic()
        run_id = generate_run_id([self.config.name, started_at.isoformat()])
        journals = self.config.journals
        self.logger.start(f"Run {run_id[:8]} for journal '{journals.draft}'")

        try:
            # State is read first so a corrupt file fails before the browser starts
            self.phase = "state"
            ledger = ProcessingLedger(self.state_dir).load()
            snapshots = SnapshotStore(self.state_dir).load()

            self.phase = "export"
            exports = await self._export(archive)

            self.phase = "extract"
            draft_entries = extract(exports[journals.draft], journals.draft)
            published = self._published_snapshot(exports, snapshots)

            self.phase = "sync"
            sync = self.synchronizer.synchronize(
                draft_entries, ledger.records, published, now=started_at
            )

            self.phase = "publish"
            outcomes = self._publish_all(draft_entries, ledger)

            report_due = sync.migration is not None and not snapshots.already_reported(
                sync.migration
            )
            self.phase = "report"
            report_path = self._report(sync, report_due)

            self.phase = "state"
            state_written = ledger.save()
            snapshots.update(sync.draft)
            if sync.published is not None:
                snapshots.update(sync.published)
            snapshots.mark_reported(sync.migration)
            snapshots.save()
        except InkwellError as e:
            self.logger.error(f"Run failed during {self.phase}: {e}")
            raise

        self.phase = None
        result = RunResult(
            run_id=run_id,
            started_at=started_at,
            finished_at=utc_now(),
            archive=str(exports[journals.draft]),
            outcomes=outcomes,
            sync=sync,
            report_path=report_path,
            state_written=state_written,
        )
        self.summary.generate_summary(
            [outcome.model_dump() for outcome in outcomes],
            migration_count=len(sync.migration.items) if sync.migration else 0,
            start_time=start,
        )
        return result

    async def _export(self, archive: Optional[Path]) -> Dict[str, Optional[Path]]:
        journals = self.config.journals
        if archive is not None:
            self.logger.info(f"Using existing export {self.logger.path(str(archive))}")
            return {journals.draft: Path(archive)}

        optional = [journals.published] if journals.export_published else []
        return await self.driver.export_journals(
            self.config.source.credentials(), [journals.draft], optional=optional
        )

    def _published_snapshot(
        self, exports: Dict[str, Optional[Path]], snapshots: SnapshotStore
    ) -> Optional[JournalSnapshot]:
        """
        Snapshot of the published journal: from this run's export if there was
        one, else the last one saved, else None.
        """
        name = self.config.journals.published
        if not name:
            return None

        exported = exports.get(name)
        if exported is not None:
            try:
                return take_snapshot(name, extract(exported, name))
            except InkwellError as e:
                self.logger.warning(f"Ignoring unreadable published export: {e}")

        saved = snapshots.get(name)
        if saved is not None:
            self.logger.debug(
                f"Using saved snapshot of '{name}' from {saved.captured_at.isoformat()}"
            )
        return saved

    def _publish_all(
        self, entries: List[JournalEntry], ledger: ProcessingLedger
    ) -> List[EntryOutcome]:
        outcomes: List[EntryOutcome] = []
        for entry in entries:
            status = ledger.classify(entry)
            if status is EntryStatus.UNCHANGED:
                self.logger.debug(f"Skipping unchanged entry: {entry.label}")
                outcomes.append(
                    EntryOutcome(
                        entry_id=entry.id, title=entry.title, status=status.value
                    )
                )
                continue

            try:
                location = self.publisher.publish(entry, ledger.get(entry.id))
            except Exception as e:
                self.logger.error(f"Failed to publish {entry.label}: {e}")
                outcomes.append(
                    EntryOutcome(
                        entry_id=entry.id,
                        title=entry.title,
                        status="failed",
                        error=str(e),
                    )
                )
                continue

            ledger.record(entry, location)
            self.logger.info(f"Published {status.value} entry: {entry.label}")
            outcomes.append(
                EntryOutcome(
                    entry_id=entry.id,
                    title=entry.title,
                    status=status.value,
                    output_location=location,
                )
            )
        return outcomes

    def _report(self, sync: SyncResult, due: bool) -> Optional[str]:
        if sync.migration is None:
            return None
        if not due:
            self.logger.info(
                f"{len(sync.migration.items)} entries still waiting to be moved "
                "(already reported)"
            )
            return None
        report = self.reports.generate(sync.migration)
        return str(report.path)
