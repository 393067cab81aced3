"""Installed-frameworks ledger.

Tracks which frameworks are installed, at which catalog version, and the hash
of the content this library last wrote, which is how customization is
detected.

The ledger is a single-owner repository: every mutation is a
read-modify-write performed under one asyncio.Lock, and every save replaces
the whole file atomically. A ledger that cannot be parsed raises
LedgerCorruptError; it is never silently replaced by an empty one.
"""

import asyncio
import dataclasses
import json
import logging
from dataclasses import asdict
from dataclasses import dataclass
from pathlib import Path

from .exceptions import LedgerCorruptError
from .protocols import FileSystemProtocol
from .schema import SemanticVersion
from .utils import utc_now_iso

logger = logging.getLogger(__name__)

_RECORD_FIELD_TYPES: dict[str, type | tuple[type, ...]] = {
    "framework_id": str,
    "version": str,
    "installed_at": str,
    "customized": bool,
    "content_hash": str,
    "customized_at": (str, type(None)),
}
_OPTIONAL_FIELDS = {"customized_at"}


@dataclass(frozen=True)
class InstalledRecord:
    """Entry in the installed-frameworks ledger."""

    framework_id: str
    version: str
    installed_at: str
    customized: bool
    content_hash: str
    customized_at: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "InstalledRecord":
        """Create from dictionary, rejecting bad fields and non-semver versions.

        Raises:
            ValueError: If the entry does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")

        unknown = set(data) - set(_RECORD_FIELD_TYPES)
        if unknown:
            raise ValueError(f"unknown fields {sorted(unknown)}")

        missing = set(_RECORD_FIELD_TYPES) - _OPTIONAL_FIELDS - set(data)
        if missing:
            raise ValueError(f"missing fields {sorted(missing)}")

        for key, value in data.items():
            if not isinstance(value, _RECORD_FIELD_TYPES[key]):
                raise ValueError(f"field {key!r} has invalid type {type(value).__name__}")

        SemanticVersion.parse(data["version"])
        return cls(**data)


class FrameworkLedger:
    """
    Installed-frameworks ledger (with injected ledger path).

    Ledger format (JSON):
    {
      "version": "1.0",
      "frameworks": {
        "tdd-bdd-strategy": {
          "framework_id": "tdd-bdd-strategy",
          "version": "1.0.0",
          "installed_at": "2025-10-26T12:00:00+00:00",
          "customized": false,
          "content_hash": "9f86d0...",
          "customized_at": null
        }
      }
    }
    """

    VERSION = "1.0"

    def __init__(self, ledger_path: Path, file_system: FileSystemProtocol):
        """Initialize ledger with app-provided path.

        The file is not created until the first write.

        Args:
            ledger_path: Path to ledger file (app determines location)
            file_system: File system collaborator
        """
        self.ledger_path = ledger_path
        self.file_system = file_system
        self._write_lock = asyncio.Lock()

    async def read(self) -> dict[str, InstalledRecord]:
        """
        Read all records.

        Returns:
            Mapping of framework id to record (empty if the ledger does not exist yet)

        Raises:
            LedgerCorruptError: If the ledger exists but cannot be parsed
            FrameworkIOError: If the ledger cannot be read
        """
        if not await self.file_system.file_exists(self.ledger_path):
            return {}

        content = await self.file_system.read_file(self.ledger_path)
        return self._parse(content)

    def _parse(self, content: str) -> dict[str, InstalledRecord]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise self._corrupt(f"not valid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("frameworks"), dict):
            raise self._corrupt("expected an object with a 'frameworks' mapping")

        if data.get("version") != self.VERSION:
            logger.warning(f"Ledger version mismatch: expected {self.VERSION}, got {data.get('version')}")

        records: dict[str, InstalledRecord] = {}
        for framework_id, entry in data["frameworks"].items():
            try:
                record = InstalledRecord.from_dict(entry)
            except ValueError as e:
                raise self._corrupt(f"invalid entry {framework_id!r}: {e}") from e
            if record.framework_id != framework_id:
                raise self._corrupt(f"entry key {framework_id!r} does not match framework_id {record.framework_id!r}")
            records[framework_id] = record

        logger.debug(f"Loaded {len(records)} records from ledger")
        return records

    def _corrupt(self, reason: str) -> LedgerCorruptError:
        return LedgerCorruptError(
            f"Ledger {self.ledger_path} is corrupt ({reason}). "
            f"Install history may be lost; repair the file or reset the ledger explicitly.",
            context={"path": str(self.ledger_path)},
        )

    async def write(self, records: dict[str, InstalledRecord]) -> None:
        """Replace the whole ledger atomically."""
        async with self._write_lock:
            await self._save(records)

    async def _save(self, records: dict[str, InstalledRecord]) -> None:
        data = {
            "version": self.VERSION,
            "frameworks": {framework_id: record.to_dict() for framework_id, record in records.items()},
        }
        await self.file_system.write_file(self.ledger_path, json.dumps(data, indent=2) + "\n")
        logger.debug(f"Saved ledger with {len(records)} records")

    async def get(self, framework_id: str) -> InstalledRecord | None:
        records = await self.read()
        return records.get(framework_id)

    async def list_records(self) -> list[InstalledRecord]:
        records = await self.read()
        return list(records.values())

    async def is_installed(self, framework_id: str) -> bool:
        return await self.get(framework_id) is not None

    async def upsert(self, record: InstalledRecord) -> None:
        """
        Add or replace the record for `record.framework_id`.

        Args:
            record: Record to store
        """
        async with self._write_lock:
            records = await self.read()
            records[record.framework_id] = record
            await self._save(records)
        logger.debug(f"Upserted {record.framework_id} at version {record.version}")

    async def remove(self, framework_id: str) -> bool:
        """
        Remove a record.

        Returns:
            True if a record was removed
        """
        async with self._write_lock:
            records = await self.read()
            if framework_id not in records:
                return False
            del records[framework_id]
            await self._save(records)
        logger.debug(f"Removed {framework_id} from ledger")
        return True

    async def mark_customized(self, framework_id: str) -> InstalledRecord | None:
        """
        Flag a record as customized by the user.

        Returns:
            Updated record, or None if the framework is not in the ledger
        """
        async with self._write_lock:
            records = await self.read()
            record = records.get(framework_id)
            if record is None:
                return None
            if not record.customized:
                record = dataclasses.replace(record, customized=True, customized_at=utc_now_iso())
                records[framework_id] = record
                await self._save(records)
                logger.debug(f"Marked {framework_id} as customized")
        return record

    async def reset(self, acknowledge_data_loss: bool = False) -> Path | None:
        """
        Replace a corrupt ledger with an empty one.

        The corrupt file is moved aside, not deleted, so install history can
        still be recovered by hand.

        Args:
            acknowledge_data_loss: Must be True; guards against accidental resets

        Returns:
            Path the previous ledger was moved to, or None if there was none

        Raises:
            ValueError: If acknowledge_data_loss is not True
        """
        if not acknowledge_data_loss:
            raise ValueError("Ledger reset discards install history; pass acknowledge_data_loss=True to proceed")

        async with self._write_lock:
            moved_to: Path | None = None
            if await self.file_system.file_exists(self.ledger_path):
                stamp = utc_now_iso().replace(":", "-").replace(".", "-")
                moved_to = self.ledger_path.with_name(f"{self.ledger_path.name}.corrupt-{stamp}")
                await self.file_system.move_file(self.ledger_path, moved_to)
                logger.warning(f"Ledger {self.ledger_path} reset; previous content moved to {moved_to}")
            await self._save({})
        return moved_to
