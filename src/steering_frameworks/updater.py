"""Framework updates.

Flow for one framework:

    check version -> up to date (refused) | update available
      -> customized? -> resolution required: backup-and-update | discard-and-update | cancel
      -> write new content + commit ledger (rolled back together on failure)

Only strictly newer catalog versions are applied; downgrades are refused.
Batch updates run sequentially and collect per-framework failures instead of
stopping at the first one.
"""

import difflib
import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .catalog import FrameworkCatalog
from .customization import CustomizationDetector
from .exceptions import FrameworkConflictError
from .exceptions import FrameworkError
from .exceptions import FrameworkNotFoundError
from .exceptions import FrameworkNotInstalledError
from .exceptions import UpdateRefusedError
from .installer import commit_content
from .ledger import FrameworkLedger
from .ledger import InstalledRecord
from .protocols import FileSystemProtocol
from .schema import is_newer_version
from .utils import backup_path_for
from .utils import content_hash
from .utils import utc_now_iso

logger = logging.getLogger(__name__)


class UpdateResolution(str, Enum):
    """Caller's decision when updating a customized framework."""

    BACKUP_AND_UPDATE = "backup-and-update"
    DISCARD_AND_UPDATE = "discard-and-update"
    CANCEL = "cancel"


class UpdateOutcome(str, Enum):
    UPDATED = "updated"
    CANCELLED = "cancelled"


class FrameworkUpdate(BaseModel):
    """An available update for an installed framework."""

    model_config = ConfigDict(frozen=True)

    framework_id: str
    current_version: str
    latest_version: str
    change_summary: list[str] = Field(default_factory=list)


class UpdateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    framework_id: str
    outcome: UpdateOutcome
    previous_version: str
    version: str
    customized: bool = False
    backup_path: Path | None = None


class FailedUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    framework_id: str
    error: str


class BatchUpdateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    succeeded: list[UpdateResult] = Field(default_factory=list)
    failed: list[FailedUpdate] = Field(default_factory=list)


UpdateResolver = Callable[[FrameworkUpdate], UpdateResolution | None]
ProgressCallback = Callable[[int, int, str], None]


class FrameworkUpdater:
    """Check for and apply framework updates (with injected steering directory)."""

    def __init__(
        self,
        catalog: FrameworkCatalog,
        ledger: FrameworkLedger,
        file_system: FileSystemProtocol,
        detector: CustomizationDetector,
        steering_path: Path,
    ):
        self.catalog = catalog
        self.ledger = ledger
        self.file_system = file_system
        self.detector = detector
        self.steering_path = steering_path

    async def check_for_updates(self) -> list[FrameworkUpdate]:
        """
        List installed frameworks whose catalog version is strictly newer.

        Frameworks that disappeared from the catalog are skipped.

        Returns:
            One FrameworkUpdate per framework with a newer version, in ledger order
        """
        updates = []
        for record in await self.ledger.list_records():
            try:
                descriptor = await self.catalog.get_descriptor(record.framework_id)
            except FrameworkNotFoundError:
                logger.debug(f"{record.framework_id} is installed but no longer in the catalog")
                continue

            if is_newer_version(descriptor.version, record.version):
                updates.append(
                    FrameworkUpdate(
                        framework_id=record.framework_id,
                        current_version=record.version,
                        latest_version=descriptor.version,
                        change_summary=[f"Updated from version {record.version} to {descriptor.version}"],
                    )
                )
        return updates

    async def preview_update(self, framework_id: str) -> str:
        """
        Unified diff from the installed file to the catalog's canonical content.

        Lets the host show what an update would replace, local edits included.
        Returns an empty string when the contents are identical.

        Raises:
            FrameworkNotFoundError: Unknown framework id
            FrameworkNotInstalledError: Framework file is missing
        """
        descriptor = await self.catalog.get_descriptor(framework_id)
        path = self.steering_path / descriptor.file_name
        if not await self.file_system.file_exists(path):
            raise FrameworkNotInstalledError(
                f"Framework not installed: {framework_id}",
                context={"framework_id": framework_id, "path": str(path)},
            )

        installed = await self.file_system.read_file(path)
        canonical = await self.catalog.read_content(descriptor)
        return "".join(
            difflib.unified_diff(
                installed.splitlines(keepends=True),
                canonical.splitlines(keepends=True),
                fromfile=f"{descriptor.file_name} (installed)",
                tofile=f"{descriptor.file_name} ({descriptor.version})",
            )
        )

    async def update_framework(
        self,
        framework_id: str,
        resolution: UpdateResolution | None = None,
    ) -> UpdateResult:
        """
        Update one installed framework to its catalog version.

        Args:
            framework_id: Catalog id
            resolution: Required when the installed file is customized

        Returns:
            UpdateResult (outcome `cancelled` if the caller chose cancel)

        Raises:
            FrameworkNotFoundError: Unknown framework id
            FrameworkNotInstalledError: Framework file or ledger entry missing
            UpdateRefusedError: Catalog version is not newer than the installed one
            FrameworkConflictError: Customized and no resolution given
            FrameworkIOError: File system failure (state rolled back)
        """
        descriptor = await self.catalog.get_descriptor(framework_id)
        path = self.steering_path / descriptor.file_name
        record = await self.ledger.get(framework_id)
        if record is None or not await self.file_system.file_exists(path):
            raise FrameworkNotInstalledError(
                f"Framework not installed: {framework_id}",
                context={"framework_id": framework_id, "path": str(path)},
            )

        if not is_newer_version(descriptor.version, record.version):
            raise UpdateRefusedError(
                f"No update available for {framework_id}: catalog version {descriptor.version} "
                f"is not newer than installed version {record.version}",
                context={
                    "framework_id": framework_id,
                    "installed_version": record.version,
                    "catalog_version": descriptor.version,
                },
            )

        customized = record.customized or await self.detector.is_customized(path, record)
        if resolution == UpdateResolution.CANCEL:
            logger.info(f"Update of {framework_id} cancelled")
            return UpdateResult(
                framework_id=framework_id,
                outcome=UpdateOutcome.CANCELLED,
                previous_version=record.version,
                version=record.version,
                customized=customized,
            )
        if customized and resolution is None:
            raise FrameworkConflictError(
                f"Framework {framework_id} has local changes in {path}; "
                f"choose backup-and-update, discard-and-update or cancel",
                context={"framework_id": framework_id, "path": str(path)},
            )

        previous = await self.file_system.read_file(path)
        content = await self.catalog.read_content(descriptor)
        backup_path: Path | None = None
        if customized and resolution == UpdateResolution.BACKUP_AND_UPDATE:
            backup_path = backup_path_for(path)
            await self.file_system.copy_file(path, backup_path)
            logger.info(f"Backup created: {backup_path}")

        new_record = InstalledRecord(
            framework_id=framework_id,
            version=descriptor.version,
            installed_at=utc_now_iso(),
            customized=False,
            content_hash=content_hash(content),
            customized_at=None,
        )
        await commit_content(self.file_system, self.ledger, path, content, new_record, previous, backup_path)

        logger.info(f"Framework updated: {framework_id} ({record.version} -> {descriptor.version})")
        return UpdateResult(
            framework_id=framework_id,
            outcome=UpdateOutcome.UPDATED,
            previous_version=record.version,
            version=descriptor.version,
            customized=customized,
            backup_path=backup_path,
        )

    async def update_all_frameworks(
        self,
        framework_ids: list[str] | None = None,
        resolver: UpdateResolver | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchUpdateResult:
        """
        Update several frameworks one after another, isolating failures.

        Args:
            framework_ids: Frameworks to update (default: all with updates available)
            resolver: Asked for a resolution when a framework turns out to be customized;
                without one, customized frameworks are reported as failed
            on_progress: Called as on_progress(done, total, framework_id) after each item

        Returns:
            BatchUpdateResult with succeeded results and failed (id, error) pairs
        """
        available = {u.framework_id: u for u in await self.check_for_updates()}
        if framework_ids is None:
            framework_ids = list(available)

        succeeded: list[UpdateResult] = []
        failed: list[FailedUpdate] = []
        total = len(framework_ids)
        for done, framework_id in enumerate(framework_ids, start=1):
            try:
                succeeded.append(await self._update_with_resolver(framework_id, available.get(framework_id), resolver))
            except FrameworkError as e:
                logger.warning(f"Update of {framework_id} failed: {e.message}")
                failed.append(FailedUpdate(framework_id=framework_id, error=e.message))

            if on_progress is not None:
                on_progress(done, total, framework_id)

        logger.info(f"Batch update finished: {len(succeeded)} succeeded, {len(failed)} failed")
        return BatchUpdateResult(succeeded=succeeded, failed=failed)

    async def _update_with_resolver(
        self,
        framework_id: str,
        update: FrameworkUpdate | None,
        resolver: UpdateResolver | None,
    ) -> UpdateResult:
        try:
            return await self.update_framework(framework_id)
        except FrameworkConflictError:
            if resolver is None or update is None:
                raise
            resolution = resolver(update)
            if resolution is None:
                raise
        # Conflicts are raised before any mutation, so retrying with a resolution is safe
        return await self.update_framework(framework_id, resolution)
