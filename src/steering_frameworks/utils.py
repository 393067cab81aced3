"""Shared helpers for hashing content and naming backups."""

import hashlib
from datetime import UTC
from datetime import datetime
from pathlib import Path


def content_hash(content: str) -> str:
    """SHA-256 hex digest of UTF-8 encoded content.

    Args:
        content: Document text exactly as written to disk

    Returns:
        64-character hex digest

    Example:
        >>> content_hash("")
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def utc_now_iso() -> str:
    """Current UTC time in ISO-8601 format."""
    return datetime.now(UTC).isoformat()


def backup_path_for(path: Path, now: datetime | None = None) -> Path:
    """Build a timestamped backup path next to `path`.

    Colons and dots in the timestamp are replaced so the name is valid on
    every platform.

    Example:
        >>> backup_path_for(Path("/w/strategy.md"), datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC))
        PosixPath('/w/strategy.md.backup-2025-01-02T03-04-05-000000+00-00')
    """
    moment = now or datetime.now(UTC)
    stamp = moment.isoformat(timespec="microseconds").replace(":", "-").replace(".", "-")
    return path.with_name(f"{path.name}.backup-{stamp}")
