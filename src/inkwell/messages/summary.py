"""
End-of-run summaries.

A run touches many entries but only a few matter to the person reading the
log: what got published, what failed, and whether anything is waiting to be
moved between journals.
"""
import time
from typing import Any, Dict, List, Optional

from inkwell.messages.logger import InkwellLogger


class Summary:
    """Generates the closing summary for a pipeline run."""

    def __init__(self, logger: Optional[InkwellLogger] = None):
        """
        Initialize summary generator.

        Args:
            logger: Optional logger instance (default: creates new logger)
        """
        self.logger = logger or InkwellLogger("inkwell.summary")

    def generate_summary(
        self,
        entry_results: List[Dict[str, Any]],
        migration_count: int = 0,
        start_time: Optional[float] = None,
    ) -> None:
        """
        Generate and log the run summary.

        Args:
            entry_results: One dict per extracted entry with keys:
                - id: Entry identifier
                - title: Entry title (may be None)
                - status: "new", "changed", "unchanged", or "failed"
                - error: Optional error message (for failures)
            migration_count: Entries listed in this run's migration request
            start_time: time.monotonic() value captured when the run started
        """
        if not entry_results and migration_count == 0:
            self.logger.info("Nothing to do: the export contained no entries.")
            return

        elapsed = time.monotonic() - start_time if start_time is not None else 0.0

        counts = {"new": 0, "changed": 0, "unchanged": 0, "failed": 0}
        for result in entry_results:
            counts[result["status"]] = counts.get(result["status"], 0) + 1

        self.logger.info("")
        entry_word = "entry" if len(entry_results) == 1 else "entries"
        self.logger.info(
            f"Finished checking {len(entry_results)} {entry_word} "
            f"in {elapsed:.2f}s."
        )

        if counts["failed"] == 0:
            self.logger.info("Completed successfully", color_prefix="OK")
        else:
            self.logger.error("Completed with errors")

        parts = []
        if counts["new"]:
            parts.append(f"{counts['new']} new")
        if counts["changed"]:
            parts.append(f"{counts['changed']} changed")
        if counts["unchanged"]:
            parts.append(f"{counts['unchanged']} unchanged")
        if counts["failed"]:
            parts.append(f"{counts['failed']} failed")
        if parts:
            self.logger.info(", ".join(parts) + ".")

        if migration_count:
            noun = "entry needs" if migration_count == 1 else "entries need"
            self.logger.info(
                f"{migration_count} {noun} moving to the published journal."
            )

        self.logger.info("")

        if counts["failed"]:
            self.logger.error("Failed entries:")
            for result in entry_results:
                if result["status"] == "failed":
                    label = result.get("title") or result["id"]
                    error_msg = result.get("error") or "Unknown error"
                    self.logger.error(f"  {label}: {error_msg}")
