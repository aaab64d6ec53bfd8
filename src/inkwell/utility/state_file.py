"""
JSON state files that survive across runs.

State is always rewritten whole: the new content goes to a temporary file in
the same directory which then replaces the old one, so a run that dies midway
leaves the previous file intact.
"""
import json
from pathlib import Path
from typing import Any, Type
from uuid import uuid4

from inkwell.utility.exceptions import InkwellError


def read_json_state(path: Path, error_cls: Type[InkwellError], default: Any) -> Any:
    """
    Read a JSON state file.

    Args:
        path: File to read
        error_cls: Exception raised when the file exists but is unusable
        default: Value returned when the file does not exist

    Raises:
        error_cls: If the file cannot be read or is not valid JSON
    """
    if not path.exists():
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise error_cls(f"Cannot read state file {path}: {e}") from e


def write_json_atomic(path: Path, data: Any, error_cls: Type[InkwellError]) -> None:
    """
    Replace ``path`` with ``data`` serialised as JSON.

    Raises:
        error_cls: If the file could not be written
    """
    temp_path = path.with_name(f"{path.name}.tmp_{uuid4().hex}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")
        temp_path.replace(path)
    except (OSError, TypeError, ValueError) as e:
        raise error_cls(f"Cannot write state file {path}: {e}") from e
    finally:
        if temp_path.exists():
            temp_path.unlink()
