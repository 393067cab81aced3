"""Steering document discovery - what is in the steering directory.

Every *.md file directly inside the steering directory is either a framework
document (its file name belongs to a catalog descriptor) or a custom document
written by the user.
"""

from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .catalog import FrameworkCatalog
from .ledger import FrameworkLedger
from .protocols import FileSystemProtocol


class SteeringDocument(BaseModel):
    """A markdown file in the steering directory."""

    model_config = ConfigDict(frozen=True)

    path: Path
    framework_id: str | None = None
    version: str | None = None
    customized: bool = False
    tracked: bool = False

    @property
    def is_custom(self) -> bool:
        return self.framework_id is None


class SteeringDocuments(BaseModel):
    """Discovered steering documents (immutable data structure)."""

    model_config = ConfigDict(frozen=True)

    frameworks: list[SteeringDocument] = Field(default_factory=list)
    custom: list[SteeringDocument] = Field(default_factory=list)

    def has_documents(self) -> bool:
        return bool(self.frameworks or self.custom)


async def discover_steering_documents(
    steering_path: Path,
    file_system: FileSystemProtocol,
    catalog: FrameworkCatalog,
    ledger: FrameworkLedger,
) -> SteeringDocuments:
    """
    Classify the steering directory's markdown files.

    Framework documents carry their ledger version and customized flag;
    `tracked` is False when the file matches a catalog entry but has no
    ledger record (copied in by hand, or the ledger was reset).

    Args:
        steering_path: Steering directory
        file_system: File system collaborator
        catalog: Catalog used to recognise framework file names
        ledger: Ledger supplying version and customized flag

    Returns:
        SteeringDocuments sorted by file name
    """
    records = await ledger.read()
    frameworks = []
    custom = []
    for path in await file_system.list_files(steering_path, "*.md"):
        descriptor = await catalog.find_by_file_name(path.name)
        if descriptor is None:
            custom.append(SteeringDocument(path=path))
            continue

        record = records.get(descriptor.id)
        frameworks.append(
            SteeringDocument(
                path=path,
                framework_id=descriptor.id,
                version=record.version if record else None,
                customized=record.customized if record else False,
                tracked=record is not None,
            )
        )

    return SteeringDocuments(frameworks=frameworks, custom=custom)
