"""FrameworkManager - the single entry point hosts call.

Wires catalog, ledger, installer, updater, search and validator around one
FrameworkSettings and one file system collaborator. All policy (paths,
limits, required sections) comes from the settings; all interaction (conflict
prompts, progress display) stays with the host.
"""

from pathlib import Path

from .catalog import FrameworkCatalog
from .config import FrameworkSettings
from .customization import CustomizationDetector
from .discovery import SteeringDocuments
from .discovery import discover_steering_documents
from .filesystem import LocalFileSystem
from .installer import ConflictResolution
from .installer import FrameworkInstaller
from .installer import InstallResult
from .ledger import FrameworkLedger
from .ledger import InstalledRecord
from .protocols import FileSystemProtocol
from .schema import FrameworkCategory
from .schema import FrameworkDescriptor
from .search import FrameworkSearchEngine
from .search import SearchResult
from .updater import BatchUpdateResult
from .updater import FrameworkUpdate
from .updater import FrameworkUpdater
from .updater import ProgressCallback
from .updater import UpdateResolution
from .updater import UpdateResolver
from .updater import UpdateResult
from .validator import QualityRule
from .validator import SteeringValidator
from .validator import ValidationResult


class FrameworkManager:
    """
    Framework lifecycle facade.

    Example:
        >>> settings = FrameworkSettings(workspace_root=Path.cwd(), resources_dir=Path("resources/frameworks"))
        >>> manager = FrameworkManager(settings)
        >>> await manager.install_framework("tdd-bdd-strategy")
        >>> for update in await manager.check_for_updates():
        ...     print(update.framework_id, update.latest_version)
    """

    def __init__(
        self,
        settings: FrameworkSettings,
        file_system: FileSystemProtocol | None = None,
        quality_rules: list[QualityRule] | None = None,
    ):
        """Initialize manager.

        Args:
            settings: Workspace settings (app policy)
            file_system: File system collaborator (default: LocalFileSystem)
            quality_rules: Replaces the validator's default quality rules
        """
        self.settings = settings
        self.file_system = file_system or LocalFileSystem()

        if quality_rules is None:
            self.validator = SteeringValidator(required_sections=settings.required_sections)
        else:
            self.validator = SteeringValidator(required_sections=settings.required_sections, quality_rules=quality_rules)

        self.catalog = FrameworkCatalog(settings.resources_dir, self.file_system, settings.manifest_file_name)
        self.ledger = FrameworkLedger(settings.ledger_path, self.file_system)
        self.detector = CustomizationDetector(self.file_system, self.catalog, self.ledger, settings.steering_path)
        self.installer = FrameworkInstaller(
            self.catalog,
            self.ledger,
            self.file_system,
            settings.steering_path,
            validator=self.validator if settings.validate_after_install else None,
        )
        self.updater = FrameworkUpdater(
            self.catalog, self.ledger, self.file_system, self.detector, settings.steering_path
        )
        self.search_engine = FrameworkSearchEngine(
            self.catalog,
            self.file_system,
            settings.steering_path,
            context_lines=settings.search_context_lines,
            max_query_length=settings.max_query_length,
            max_results=settings.max_results,
            max_scan_bytes=settings.max_scan_bytes,
        )

    @classmethod
    def for_workspace(cls, workspace_root: Path, resources_dir: Path) -> "FrameworkManager":
        """Build a manager with settings read from the workspace's pyproject.toml, if any."""
        settings = FrameworkSettings.from_pyproject(workspace_root / "pyproject.toml", workspace_root, resources_dir)
        return cls(settings)

    # Catalog

    async def list_available_frameworks(self) -> list[FrameworkDescriptor]:
        return await self.catalog.list_descriptors()

    async def get_frameworks_by_category(self, category: FrameworkCategory) -> list[FrameworkDescriptor]:
        return await self.catalog.list_by_category(category)

    async def get_framework(self, framework_id: str) -> FrameworkDescriptor:
        return await self.catalog.get_descriptor(framework_id)

    def reload(self) -> None:
        """Re-read the manifest on next access."""
        self.catalog.reload()

    # Installed state

    async def get_installed_frameworks(self) -> list[FrameworkDescriptor]:
        """Descriptors of installed frameworks that are still in the catalog, in ledger order."""
        manifest = await self.catalog.load_manifest()
        installed = []
        for record in await self.ledger.list_records():
            descriptor = manifest.get(record.framework_id)
            if descriptor is not None:
                installed.append(descriptor)
        return installed

    async def get_installed_record(self, framework_id: str) -> InstalledRecord | None:
        return await self.ledger.get(framework_id)

    async def is_framework_installed(self, framework_id: str) -> bool:
        """True if the framework has a ledger record and its file is present."""
        manifest = await self.catalog.load_manifest()
        descriptor = manifest.get(framework_id)
        if descriptor is None:
            return False
        if not await self.ledger.is_installed(framework_id):
            return False
        return await self.file_system.file_exists(self.settings.steering_path / descriptor.file_name)

    async def is_framework_customized(self, framework_id: str) -> bool:
        return await self.detector.check(framework_id)

    async def mark_framework_as_customized(self, framework_id: str) -> InstalledRecord | None:
        return await self.ledger.mark_customized(framework_id)

    async def list_steering_documents(self) -> SteeringDocuments:
        return await discover_steering_documents(
            self.settings.steering_path, self.file_system, self.catalog, self.ledger
        )

    # Install / update

    async def install_framework(
        self,
        framework_id: str,
        resolution: ConflictResolution | None = None,
    ) -> InstallResult:
        return await self.installer.install(framework_id, resolution)

    async def uninstall_framework(self, framework_id: str) -> None:
        await self.installer.uninstall(framework_id)

    async def check_for_updates(self) -> list[FrameworkUpdate]:
        return await self.updater.check_for_updates()

    async def preview_update(self, framework_id: str) -> str:
        """Unified diff of what updating would change in the installed file."""
        return await self.updater.preview_update(framework_id)

    async def update_framework(
        self,
        framework_id: str,
        resolution: UpdateResolution | None = None,
    ) -> UpdateResult:
        return await self.updater.update_framework(framework_id, resolution)

    async def update_all_frameworks(
        self,
        framework_ids: list[str] | None = None,
        resolver: UpdateResolver | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchUpdateResult:
        return await self.updater.update_all_frameworks(framework_ids, resolver, on_progress)

    # Search / validation

    async def search_frameworks(self, query: str, include_documents: bool = True) -> list[SearchResult]:
        return await self.search_engine.search(query, include_documents)

    def validate(self, document_text: str) -> ValidationResult:
        return self.validator.validate(document_text)
