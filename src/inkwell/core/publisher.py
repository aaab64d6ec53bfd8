"""
Publishers turn journal entries into content files for the static site.

Publisher is a small registry-backed base class: subclasses register under a
``publisher_type`` and ``Publisher.create(config, root)`` picks the one named
in the workspace configuration.

Publishing must be safe to repeat. The ledger only records an entry after its
file is written, so a crash in between means the same entry is published
again on the next run and simply overwrites its own file.

Example:
    ```python
    class HtmlPublisher(Publisher, publisher_type="html"):
        def publish(self, entry, prior=None) -> str:
            ...
    ```
"""
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Type
from uuid import uuid4

import yaml
from pydantic import BaseModel, Field, field_validator

from inkwell.messages import get_logger
from inkwell.utility.exceptions import PublishError

from .models import JournalEntry, ProcessingRecord

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: Optional[str]) -> str:
    """Lower-case, runs of anything but a-z/0-9 become '-', trimmed."""
    slug = _NON_ALNUM.sub("-", (title or "untitled").lower()).strip("-")
    return slug or "untitled"


class PublisherConfig(BaseModel):
    """Where and how entries are published."""

    type: str = Field(default="markdown", description="Registered publisher type")
    posts_dir: str = Field(default="posts", description="Output directory")
    categories: List[str] = Field(
        default_factory=lambda: ["hardware", "software", "hacking"],
        description="Tags that double as site categories",
    )
    default_category: str = "general"

    @field_validator("categories")
    @classmethod
    def lower_categories(cls, v):
        return [c.lower() for c in v]


class Publisher(ABC):
    """Base class for publishers."""

    _registry: Dict[str, Type["Publisher"]] = {}

    def __init_subclass__(cls, publisher_type: str = None, **kwargs):
        super().__init_subclass__(**kwargs)
        if publisher_type:
            cls._registry[publisher_type] = cls

    @classmethod
    def create(cls, config: PublisherConfig, root: Path) -> "Publisher":
        """
        Create the publisher named by ``config.type``.

        Raises:
            ValueError: If the type is not registered
        """
        if config.type not in cls._registry:
            known = ", ".join(sorted(cls._registry))
            raise ValueError(f"Unknown publisher type: {config.type} (known: {known})")
        return cls._registry[config.type](config, root)

    def __init__(self, config: PublisherConfig, root: Path):
        self.config = config
        self.root = Path(root)
        self.logger = get_logger(f"inkwell.publisher.{self.__class__.__name__}")

    @abstractmethod
    def publish(
        self, entry: JournalEntry, prior: Optional[ProcessingRecord] = None
    ) -> str:
        """
        Write the entry's output and return its location.

        Args:
            entry: Entry to publish
            prior: The entry's existing record, if it was published before

        Raises:
            PublishError: If the output could not be written
        """


class MarkdownPublisher(Publisher, publisher_type="markdown"):
    """
    Writes ``<posts_dir>/<YYYY>/<MM>/<slug>.md`` with a YAML front-matter block.

    An entry that was published before keeps its original file even if its
    title changed, so its URL stays put.
    """

    def publish(
        self, entry: JournalEntry, prior: Optional[ProcessingRecord] = None
    ) -> str:
        location = prior.output_location if prior else self.location_for(entry)
        target = self.root / location
        content = self.render(entry)

        temp_path = target.with_name(f".{target.name}.tmp_{uuid4().hex}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(content, encoding="utf-8")
            temp_path.replace(target)
        except OSError as e:
            raise PublishError(f"Cannot write {target}: {e}", entry_id=entry.id) from e
        finally:
            if temp_path.exists():
                temp_path.unlink()

        self.logger.debug(f"Wrote {entry.label} to {location}")
        return location

    def location_for(self, entry: JournalEntry) -> str:
        """Workspace-relative path for a first-time publish."""
        month_dir = Path(self.config.posts_dir) / entry.created_at.strftime("%Y/%m")
        slug = slugify(entry.title)
        location = month_dir / f"{slug}.md"
        owner = self._owner_of(self.root / location)
        if owner is not None and owner != entry.id:
            # Another entry already has this slug this month
            location = month_dir / f"{slug}-{entry.id[:8].lower()}.md"
        return location.as_posix()

    def front_matter(self, entry: JournalEntry) -> Dict[str, Any]:
        return {
            "title": entry.title or "Untitled",
            "publishDate": entry.created_at.isoformat(),
            "editDate": entry.modified_at.isoformat(),
            "uuid": entry.id,
            "tags": list(entry.tags),
            "category": self.category_for(entry.tags),
            "images": [attachment.identifier for attachment in entry.attachments],
        }

    def category_for(self, tags: List[str]) -> str:
        for tag in tags:
            if tag.lower() in self.config.categories:
                return tag.lower()
        return self.config.default_category

    def render(self, entry: JournalEntry) -> str:
        header = yaml.safe_dump(
            self.front_matter(entry), sort_keys=False, allow_unicode=True
        )
        body = entry.text.rstrip("\n")
        return f"---\n{header}---\n\n{body}\n"

    @staticmethod
    def _owner_of(path: Path) -> Optional[str]:
        """The uuid in an existing post's front matter, if the file exists."""
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
            _, header, _ = text.split("---\n", 2)
            data = yaml.safe_load(header) or {}
        except (OSError, ValueError, yaml.YAMLError):
            return ""
        return str(data.get("uuid", "")) if isinstance(data, dict) else ""
