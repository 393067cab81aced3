"""Framework catalog - manifest loading and canonical content lookup.

The catalog is read-only: descriptors are parsed once per session and never
mutated. `reload()` drops the cached manifest when the host knows the bundled
resources changed.
"""

import logging
from pathlib import Path

from .exceptions import FrameworkNotFoundError
from .protocols import FileSystemProtocol
from .schema import FrameworkCategory
from .schema import FrameworkDescriptor
from .schema import FrameworkManifest

logger = logging.getLogger(__name__)


class FrameworkCatalog:
    """
    Catalog of available frameworks (with injected resources directory).

    Example:
        >>> catalog = FrameworkCatalog(resources_dir=Path("resources/frameworks"), file_system=LocalFileSystem())
        >>> descriptor = await catalog.get_descriptor("tdd-bdd-strategy")
        >>> content = await catalog.read_content(descriptor)
    """

    def __init__(
        self,
        resources_dir: Path,
        file_system: FileSystemProtocol,
        manifest_file_name: str = "manifest.json",
    ):
        self.resources_dir = resources_dir
        self.manifest_path = resources_dir / manifest_file_name
        self.file_system = file_system
        self._manifest: FrameworkManifest | None = None

    async def load_manifest(self) -> FrameworkManifest:
        """
        Load and validate the manifest (cached after first success).

        Returns:
            Parsed manifest

        Raises:
            ManifestCorruptError: If the manifest is malformed or invalid
            FrameworkIOError: If the manifest cannot be read
        """
        if self._manifest is not None:
            return self._manifest

        content = await self.file_system.read_file(self.manifest_path)
        self._manifest = FrameworkManifest.from_json(content, source=str(self.manifest_path))
        logger.debug(f"Loaded {len(self._manifest.frameworks)} frameworks from {self.manifest_path}")
        return self._manifest

    def reload(self) -> None:
        """Forget the cached manifest; the next access reads it again."""
        self._manifest = None

    async def list_descriptors(self) -> list[FrameworkDescriptor]:
        manifest = await self.load_manifest()
        return list(manifest.frameworks)

    async def list_by_category(self, category: FrameworkCategory) -> list[FrameworkDescriptor]:
        manifest = await self.load_manifest()
        return [d for d in manifest.frameworks if d.category == category]

    async def get_descriptor(self, framework_id: str) -> FrameworkDescriptor:
        """
        Get descriptor by id.

        Raises:
            FrameworkNotFoundError: If no framework has this id
        """
        manifest = await self.load_manifest()
        descriptor = manifest.get(framework_id)
        if descriptor is None:
            raise FrameworkNotFoundError(
                f"Framework not found: {framework_id}",
                context={"framework_id": framework_id, "manifest": str(self.manifest_path)},
            )
        return descriptor

    async def find_by_file_name(self, file_name: str) -> FrameworkDescriptor | None:
        """Map an installed steering file name back to its framework."""
        manifest = await self.load_manifest()
        for descriptor in manifest.frameworks:
            if descriptor.file_name == file_name:
                return descriptor
        return None

    def content_path(self, descriptor: FrameworkDescriptor) -> Path:
        return self.resources_dir / descriptor.file_name

    async def read_content(self, descriptor: FrameworkDescriptor) -> str:
        """Read canonical content for a descriptor from the resources directory."""
        return await self.file_system.read_file(self.content_path(descriptor))
