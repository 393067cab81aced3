"""Customization detection.

A framework is customized when its on-disk content no longer hashes to the
value recorded in the ledger at the last install or update.
"""

import logging
from pathlib import Path

from .catalog import FrameworkCatalog
from .exceptions import FrameworkNotInstalledError
from .ledger import FrameworkLedger
from .ledger import InstalledRecord
from .protocols import FileSystemProtocol
from .utils import content_hash

logger = logging.getLogger(__name__)


class CustomizationDetector:
    """Compare installed content against the ledger's recorded hash."""

    def __init__(
        self,
        file_system: FileSystemProtocol,
        catalog: FrameworkCatalog,
        ledger: FrameworkLedger,
        steering_path: Path,
    ):
        self.file_system = file_system
        self.catalog = catalog
        self.ledger = ledger
        self.steering_path = steering_path

    async def current_hash(self, path: Path) -> str:
        return content_hash(await self.file_system.read_file(path))

    async def is_customized(self, path: Path, record: InstalledRecord) -> bool:
        """
        Check whether the file at `path` drifted from `record.content_hash`.

        Args:
            path: Installed framework file
            record: Ledger record written when the file was last installed/updated

        Returns:
            True if content was modified after this library last wrote it

        Raises:
            FrameworkIOError: If the file cannot be read
        """
        drifted = await self.current_hash(path) != record.content_hash
        if drifted:
            logger.debug(f"{record.framework_id}: content at {path} differs from ledger hash")
        return drifted

    async def check(self, framework_id: str) -> bool:
        """
        Detect customization for an installed framework and persist the flag.

        Once drift is seen, the record is marked customized (with timestamp)
        so the flag survives even if the content is later reverted by hand.

        Returns:
            True if the framework is customized

        Raises:
            FrameworkNotFoundError: Unknown framework id
            FrameworkNotInstalledError: Framework not installed
        """
        descriptor = await self.catalog.get_descriptor(framework_id)
        record = await self.ledger.get(framework_id)
        path = self.steering_path / descriptor.file_name
        if record is None or not await self.file_system.file_exists(path):
            raise FrameworkNotInstalledError(
                f"Framework not installed: {framework_id}",
                context={"framework_id": framework_id, "path": str(path)},
            )

        if record.customized:
            return True

        if await self.is_customized(path, record):
            await self.ledger.mark_customized(framework_id)
            logger.info(f"Detected local customization of {framework_id} ({path})")
            return True
        return False
