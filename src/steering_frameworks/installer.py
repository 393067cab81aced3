"""Framework installation.

Install writes the canonical document into the steering directory and records
it in the ledger. The content write and the ledger write form one unit: if the
ledger write fails, the content file is restored to what it was before (or
removed if it did not exist) and the error propagates.

Conflicts are never resolved here. When the target file exists and does not
match the ledger, the caller must pass a ConflictResolution; without one,
FrameworkConflictError is raised before anything is touched.
"""

import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .catalog import FrameworkCatalog
from .exceptions import FrameworkConflictError
from .exceptions import FrameworkError
from .exceptions import FrameworkNotInstalledError
from .ledger import FrameworkLedger
from .ledger import InstalledRecord
from .protocols import FileSystemProtocol
from .utils import backup_path_for
from .utils import content_hash
from .utils import utc_now_iso
from .validator import SteeringValidator
from .validator import ValidationResult

logger = logging.getLogger(__name__)

MERGE_START_MARKER = "<!-- ========== MERGE CONFLICT: New Framework Content Below ========== -->"
MERGE_HINT = "<!-- Review and integrate the content below, then remove conflict markers -->"
MERGE_END_MARKER = "<!-- ========== END MERGE CONFLICT ========== -->"

# Sentinel: the write never happened, so the file needs no restoring
_UNCHANGED = object()


class ConflictResolution(str, Enum):
    """Caller's decision when install would overwrite diverging content."""

    OVERWRITE = "overwrite"
    MERGE = "merge"
    KEEP_EXISTING = "keep-existing"
    CANCEL = "cancel"


class InstallOutcome(str, Enum):
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already-installed"
    MERGED = "merged"
    KEPT_EXISTING = "kept-existing"
    CANCELLED = "cancelled"


class InstallResult(BaseModel):
    """What install did (immutable)."""

    model_config = ConfigDict(frozen=True)

    framework_id: str
    outcome: InstallOutcome
    path: Path
    version: str | None = None
    content_hash: str | None = None
    backup_path: Path | None = None
    missing_dependencies: list[str] = Field(default_factory=list)
    validation: ValidationResult | None = None


def merge_content(existing: str, canonical: str) -> str:
    """Append canonical content below the user's content between merge markers."""
    return f"{existing}\n\n{MERGE_START_MARKER}\n{MERGE_HINT}\n\n{canonical}\n\n{MERGE_END_MARKER}\n"


async def commit_content(
    file_system: FileSystemProtocol,
    ledger: FrameworkLedger,
    path: Path,
    content: str,
    record: InstalledRecord,
    previous_content: str | None,
    backup_path: Path | None = None,
) -> None:
    """
    Write `content` to `path` and upsert `record` as one unit.

    On failure the file is put back to `previous_content` (deleted when None),
    the backup made for this operation is removed, and the error is re-raised.

    Args:
        file_system: File system collaborator
        ledger: Ledger receiving the record
        path: Installed framework file
        content: New content
        record: Record describing `content`
        previous_content: Content of `path` before this operation, None if absent
        backup_path: Backup created by this operation, if any
    """
    written = False
    try:
        await file_system.write_file(path, content)
        written = True
        await ledger.upsert(record)
    except Exception:
        await _roll_back(file_system, path, previous_content if written else _UNCHANGED, backup_path)
        raise


async def _roll_back(
    file_system: FileSystemProtocol,
    path: Path,
    previous_content: object,
    backup_path: Path | None,
) -> None:
    try:
        if previous_content is None:
            await file_system.delete_file(path)
            logger.info(f"Rolled back: removed {path}")
        elif isinstance(previous_content, str):
            await file_system.write_file(path, previous_content)
            logger.info(f"Rolled back: restored previous content of {path}")
        if backup_path is not None:
            await file_system.delete_file(backup_path)
    except FrameworkError as e:
        logger.error(f"Rollback of {path} failed, manual cleanup needed: {e}")


class FrameworkInstaller:
    """
    Install and uninstall frameworks (with injected steering directory).

    Example:
        >>> installer = FrameworkInstaller(catalog, ledger, file_system, steering_path)
        >>> try:
        ...     result = await installer.install("tdd-bdd-strategy")
        ... except FrameworkConflictError:
        ...     result = await installer.install("tdd-bdd-strategy", ConflictResolution.MERGE)
    """

    def __init__(
        self,
        catalog: FrameworkCatalog,
        ledger: FrameworkLedger,
        file_system: FileSystemProtocol,
        steering_path: Path,
        validator: SteeringValidator | None = None,
    ):
        """Initialize installer.

        Args:
            catalog: Source of descriptors and canonical content
            ledger: Installed-frameworks ledger
            file_system: File system collaborator
            steering_path: Directory installed documents are written to (app policy)
            validator: If given, installed content is validated after the write
        """
        self.catalog = catalog
        self.ledger = ledger
        self.file_system = file_system
        self.steering_path = steering_path
        self.validator = validator

    async def install(
        self,
        framework_id: str,
        resolution: ConflictResolution | None = None,
    ) -> InstallResult:
        """
        Install a framework into the steering directory.

        Process:
        1. Resolve descriptor
        2. Detect conflict (file exists and is untracked, customized or drifted)
        3. Apply caller's resolution (required when conflicting)
        4. Back up the existing file if it will be replaced or merged
        5. Write content and upsert ledger record as one unit

        Args:
            framework_id: Catalog id
            resolution: Decision used only when a conflict is detected

        Returns:
            InstallResult describing the outcome

        Raises:
            FrameworkNotFoundError: Unknown framework id
            FrameworkConflictError: Conflict detected and no resolution given
            LedgerCorruptError: Ledger cannot be parsed (nothing is written)
            FrameworkIOError: File system failure (state rolled back)
        """
        descriptor = await self.catalog.get_descriptor(framework_id)
        path = self.steering_path / descriptor.file_name
        record = await self.ledger.get(framework_id)

        previous: str | None = None
        conflict = False
        if await self.file_system.file_exists(path):
            previous = await self.file_system.read_file(path)
            conflict = record is None or record.customized or content_hash(previous) != record.content_hash

        if conflict:
            if resolution is None:
                raise FrameworkConflictError(
                    f"Framework file {path} already exists and differs from the installed version of "
                    f"{framework_id}; choose overwrite, merge, keep-existing or cancel",
                    context={"framework_id": framework_id, "path": str(path)},
                )
            if resolution == ConflictResolution.CANCEL:
                logger.info(f"Installation of {framework_id} cancelled")
                return InstallResult(framework_id=framework_id, outcome=InstallOutcome.CANCELLED, path=path)
            if resolution == ConflictResolution.KEEP_EXISTING:
                logger.info(f"Keeping existing {path}; {framework_id} not installed")
                return InstallResult(framework_id=framework_id, outcome=InstallOutcome.KEPT_EXISTING, path=path)

        canonical = await self.catalog.read_content(descriptor)

        if not conflict and record is not None and previous == canonical and record.version == descriptor.version:
            logger.info(f"{framework_id} {descriptor.version} is already installed")
            return InstallResult(
                framework_id=framework_id,
                outcome=InstallOutcome.ALREADY_INSTALLED,
                path=path,
                version=record.version,
                content_hash=record.content_hash,
            )

        logger.info(f"Installing {framework_id} {descriptor.version} to {path}")
        backup_path: Path | None = None
        if conflict:
            backup_path = backup_path_for(path)
            await self.file_system.copy_file(path, backup_path)
            logger.info(f"Backup created: {backup_path}")

        merged = conflict and resolution == ConflictResolution.MERGE
        content = merge_content(previous or "", canonical) if merged else canonical
        now = utc_now_iso()
        new_record = InstalledRecord(
            framework_id=framework_id,
            version=descriptor.version,
            installed_at=now,
            # Merged files intentionally diverge from canonical content
            customized=merged,
            content_hash=content_hash(content),
            customized_at=now if merged else None,
        )
        await commit_content(self.file_system, self.ledger, path, content, new_record, previous, backup_path)

        installed = await self.ledger.read()
        missing = [d for d in descriptor.dependencies if d not in installed]
        if missing:
            logger.warning(f"{framework_id} depends on frameworks that are not installed: {', '.join(missing)}")

        validation = self.validator.validate(content) if self.validator is not None else None
        if validation is not None and not validation.passed:
            logger.warning(f"{path} has {len(validation.errors)} validation errors")

        logger.info(f"Successfully installed framework: {framework_id}")
        return InstallResult(
            framework_id=framework_id,
            outcome=InstallOutcome.MERGED if merged else InstallOutcome.INSTALLED,
            path=path,
            version=descriptor.version,
            content_hash=new_record.content_hash,
            backup_path=backup_path,
            missing_dependencies=missing,
            validation=validation,
        )

    async def uninstall(self, framework_id: str) -> None:
        """
        Remove a framework's file and ledger entry.

        If the ledger update fails, the deleted file is restored.

        Raises:
            FrameworkNotFoundError: Unknown framework id
            FrameworkNotInstalledError: Neither file nor ledger entry exists
        """
        descriptor = await self.catalog.get_descriptor(framework_id)
        path = self.steering_path / descriptor.file_name
        record = await self.ledger.get(framework_id)
        exists = await self.file_system.file_exists(path)
        if record is None and not exists:
            raise FrameworkNotInstalledError(
                f"Framework not installed: {framework_id}",
                context={"framework_id": framework_id, "path": str(path)},
            )

        logger.info(f"Uninstalling framework: {framework_id}")
        previous = await self.file_system.read_file(path) if exists else None
        await self.file_system.delete_file(path)
        try:
            await self.ledger.remove(framework_id)
        except Exception:
            if previous is not None:
                await _roll_back(self.file_system, path, previous, None)
            raise
        logger.info(f"Successfully uninstalled: {framework_id}")
