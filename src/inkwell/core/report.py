"""
Migration reports: the durable to-do list for moving entries between journals.

Each MigrationRequest becomes one Markdown file under the reports directory
plus a small JSON notification payload (title, body, labels) that an issue
tracker integration can post as-is. Reports are only ever created: an
existing report file is never overwritten or merged into.

Nothing here touches the journaling service.
"""
import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict

from inkwell.messages import get_logger
from inkwell.utility.exceptions import ReportError
from inkwell.utility.run_id import timestamp_slug

from .models import MigrationRequest, utc_now

INSTRUCTIONS = """\
These entries have been published to the site but are still in the draft
journal. Move each one to the published journal in the journaling app:

1. Open the entry in the draft journal.
2. Use "Move to Journal" and pick the published journal.
3. Tick it off below.

inkwell will stop listing an entry once it no longer appears in the draft
journal export."""

LABELS: Tuple[str, ...] = ("inkwell", "journal-migration")


class MigrationReport(BaseModel):
    """A written report and the notification payload built from it."""

    model_config = ConfigDict(frozen=True)

    request_id: str
    generated_at: datetime
    entry_count: int
    path: Path
    notification_path: Path
    title: str
    body: str
    labels: Tuple[str, ...] = LABELS

    def notification(self) -> dict:
        return {"title": self.title, "body": self.body, "labels": list(self.labels)}


class MigrationReportGenerator:
    """Writes one report per migration request."""

    def __init__(self, reports_dir: Path):
        self.reports_dir = Path(reports_dir)
        self.logger = get_logger("inkwell.report")

    def generate(
        self, request: MigrationRequest, generated_at: Optional[datetime] = None
    ) -> MigrationReport:
        """
        Write the report for ``request``.

        Raises:
            ReportError: If the report file already exists or cannot be written
        """
        generated_at = generated_at or utc_now()
        title = self.render_title(request)
        body = self.render_body(request)

        stem = f"migration-{timestamp_slug(generated_at)}-{request.id[:8]}"
        path = self.reports_dir / f"{stem}.md"
        notification_path = self.reports_dir / f"{stem}.notification.json"

        report = MigrationReport(
            request_id=request.id,
            generated_at=generated_at,
            entry_count=len(request.items),
            path=path,
            notification_path=notification_path,
            title=title,
            body=body,
        )

        try:
            self.reports_dir.mkdir(parents=True, exist_ok=True)
            # "x" refuses to replace an existing report
            with open(path, "x", encoding="utf-8") as f:
                f.write(self.render_document(request, generated_at, body))
            with open(notification_path, "x", encoding="utf-8") as f:
                json.dump(report.notification(), f, indent=2)
                f.write("\n")
        except FileExistsError as e:
            raise ReportError(f"Report already exists: {e.filename}") from e
        except OSError as e:
            raise ReportError(f"Cannot write migration report {path}: {e}") from e

        self.logger.success(
            f"Wrote migration report for {report.entry_count} entries: "
            f"{self.logger.path(str(path))}"
        )
        return report

    @staticmethod
    def render_title(request: MigrationRequest) -> str:
        count = len(request.items)
        noun = "entry" if count == 1 else "entries"
        return f"Move {count} published {noun} out of {request.source_journal}"

    @staticmethod
    def render_body(request: MigrationRequest) -> str:
        """Human-facing text: one line per entry, then the instructions."""
        target = request.target_journal or "the published journal"
        lines: List[str] = [
            f"Move from **{request.source_journal}** to **{target}**:",
            "",
        ]
        for item in request.items:
            lines.append(f"- [ ] {item.title or 'Untitled'} (`{item.entry_id}`)")
        lines.extend(["", INSTRUCTIONS])
        return "\n".join(lines)

    @staticmethod
    def render_document(
        request: MigrationRequest, generated_at: datetime, body: str
    ) -> str:
        front_matter = {
            "id": request.id,
            "created": request.created_at.isoformat(),
            "generated": generated_at.isoformat(),
            "source_journal": request.source_journal,
            "target_journal": request.target_journal,
            "entry_count": len(request.items),
            "entries": [
                {"id": item.entry_id, "title": item.title} for item in request.items
            ],
        }
        header = yaml.safe_dump(front_matter, sort_keys=False, allow_unicode=True)
        title = MigrationReportGenerator.render_title(request)
        return f"---\n{header}---\n\n# {title}\n\n{body}\n"
