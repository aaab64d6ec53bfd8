"""
Identifier generation for runs, migration requests, and report files.

Identifiers are deterministic hashes of their components, so the same batch
generated at the same instant always gets the same identifier and a report can
be traced back to the request it renders.
"""
import hashlib
from datetime import datetime
from typing import List


def generate_run_id(components: List[str]) -> str:
    """
    Generate deterministic ID from components.

    Args:
        components: List of string components to hash
            (e.g., [workspace, journal, "2024-01-01T10:00:00+00:00"])

    Returns:
        32-character hex string (first 32 chars of SHA256 hash)

    Example:
        >>> request_id = generate_run_id(
        ...     ["my-blog", "Blog Draft", "2024-01-01T10:00:00+00:00", "A", "B"]
        ... )
    """
    combined = "|".join(str(c) for c in components)
    hash_obj = hashlib.sha256(combined.encode("utf-8"))
    return hash_obj.hexdigest()[:32]


def timestamp_slug(moment: datetime) -> str:
    """Compact, sortable, filename-safe timestamp (microsecond precision)."""
    return moment.strftime("%Y%m%dT%H%M%S%fZ")
