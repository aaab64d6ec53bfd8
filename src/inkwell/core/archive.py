"""
Reading journal entries out of an export artifact.

An export is either a flat JSON document, a gzip-compressed JSON document, or
a zip archive holding one JSON document per journal (plus photos and other
attachments). The container type is detected from the file contents, not its
name, because captured downloads are saved under generated names.
"""
import gzip
import json
import zipfile
from pathlib import Path, PurePosixPath
from typing import Any, List, Optional, Tuple, Union

from pydantic import ValidationError

from inkwell.messages import get_logger
from inkwell.utility.exceptions import MalformedArchive

from .models import Attachment, JournalEntry

GZIP_MAGIC = b"\x1f\x8b"

logger = get_logger("inkwell.archive")


def extract(
    archive_location: Union[str, Path], journal_name: str
) -> List[JournalEntry]:
    """
    Parse an export and keep the entries that belong to ``journal_name``.

    An entry belongs to the journal when its journal name contains
    ``journal_name``, ignoring case. Entries keep the order they have in the
    export and are not deduplicated.

    Args:
        archive_location: Path to the captured export
        journal_name: Configured journal name

    Returns:
        Matching entries in export order

    Raises:
        MalformedArchive: If the artifact has no single usable JSON document,
            or any entry in it is missing its identifier or creation date
    """
    path = Path(archive_location)
    entries = read_entries(path, journal_name)
    wanted = journal_name.casefold()
    matching = [
        entry
        for entry in entries
        if entry.journal and wanted in entry.journal.casefold()
    ]
    logger.info(
        f"Extracted {len(matching)} of {len(entries)} entries for journal "
        f"'{journal_name}' from {logger.path(path.name)}"
    )
    return matching


def read_entries(path: Path, journal_hint: Optional[str] = None) -> List[JournalEntry]:
    """Parse every entry in an export artifact, without filtering."""
    if not path.is_file():
        raise MalformedArchive(f"Export artifact not found: {path}")

    document, container_name = _load_document(path, journal_hint)
    raw_entries = _entry_list(document, path)
    return [
        _parse_entry(raw, container_name, index, path)
        for index, raw in enumerate(raw_entries)
    ]


def _load_document(path: Path, journal_hint: Optional[str]) -> Tuple[Any, str]:
    """Return the decoded JSON document and the name of the file it came from."""
    if zipfile.is_zipfile(path):
        return _load_from_zip(path, journal_hint)

    with open(path, "rb") as f:
        head = f.read(2)

    try:
        if head == GZIP_MAGIC:
            with gzip.open(path, "rt", encoding="utf-8") as f:
                return json.load(f), _stem(path.name, ".gz")
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f), path.stem
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedArchive(f"{path.name} is not a readable JSON export: {e}") from e


def _load_from_zip(path: Path, journal_hint: Optional[str]) -> Tuple[Any, str]:
    try:
        with zipfile.ZipFile(path) as archive:
            members = [
                name
                for name in archive.namelist()
                if name.lower().endswith(".json")
                and not name.endswith("/")
                and "__MACOSX" not in PurePosixPath(name).parts
            ]
            member = _choose_member(members, path, journal_hint)
            with archive.open(member) as f:
                document = json.loads(f.read().decode("utf-8"))
    except (zipfile.BadZipFile, OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedArchive(f"{path.name} could not be read: {e}") from e

    logger.debug(f"Using {member} from {path.name}")
    return document, PurePosixPath(member).stem


def _choose_member(members: List[str], path: Path, journal_hint: Optional[str]) -> str:
    """Pick the one JSON member to read, or fail if there is none or no clear one."""
    if not members:
        raise MalformedArchive(f"{path.name} contains no JSON document")
    if len(members) == 1:
        return members[0]

    # A multi-journal export names each document after its journal
    if journal_hint:
        wanted = journal_hint.casefold()
        named = [m for m in members if PurePosixPath(m).stem.casefold() == wanted]
        if len(named) == 1:
            return named[0]

    raise MalformedArchive(
        f"{path.name} contains {len(members)} JSON documents and none is clearly "
        f"the export: {', '.join(sorted(members))}"
    )


def _entry_list(document: Any, path: Path) -> List[Any]:
    if isinstance(document, dict) and isinstance(document.get("entries"), list):
        return document["entries"]
    if isinstance(document, list):
        return document
    raise MalformedArchive(f"{path.name} has no 'entries' list")


def _parse_entry(raw: Any, container_name: str, index: int, path: Path) -> JournalEntry:
    if not isinstance(raw, dict):
        raise MalformedArchive(f"{path.name}: entry {index} is not an object")

    entry_id = raw.get("uuid")
    created = raw.get("creationDate")
    if not entry_id or not created:
        raise MalformedArchive(
            f"{path.name}: entry {index} is missing its uuid or creationDate"
        )

    attachments: List[Attachment] = []
    for item in (raw.get("photos") or []) + (raw.get("attachments") or []):
        if isinstance(item, dict) and item.get("identifier"):
            attachments.append(
                Attachment(identifier=item["identifier"], caption=item.get("caption"))
            )

    journal = raw.get("journal") or raw.get("journalName") or container_name
    if isinstance(journal, dict):
        journal = journal.get("name") or container_name

    try:
        return JournalEntry(
            id=entry_id,
            title=raw.get("title") or None,
            created_at=created,
            modified_at=raw.get("modifiedDate") or None,
            text=raw.get("text") or raw.get("richText") or "",
            tags=[str(tag) for tag in raw.get("tags") or []],
            attachments=attachments,
            journal=journal,
        )
    except ValidationError as e:
        raise MalformedArchive(f"{path.name}: entry {entry_id} is invalid: {e}") from e


def _stem(name: str, suffix: str) -> str:
    if name.lower().endswith(suffix):
        name = name[: -len(suffix)]
    return PurePosixPath(name).stem
