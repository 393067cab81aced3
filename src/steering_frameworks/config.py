"""Settings for a framework workspace.

Paths are app policy: the host decides where the workspace and the bundled
framework resources live and injects them here. Everything else has a
default matching the layout the downstream agent reads.
"""

import tomllib
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

DEFAULT_REQUIRED_SECTIONS = ("Purpose", "Key Concepts", "Best Practices", "Summary")


class FrameworkSettings(BaseModel):
    """
    Framework workspace settings (immutable).

    Layout with defaults:
        <resources_dir>/manifest.json
        <resources_dir>/<fileName>                       canonical content
        <workspace_root>/.kiro/steering/<fileName>        installed content
        <workspace_root>/.kiro/.metadata/installed-frameworks.json
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    workspace_root: Path
    resources_dir: Path

    steering_dir: Path = Path(".kiro/steering")
    metadata_dir: Path = Path(".kiro/.metadata")
    manifest_file_name: str = "manifest.json"
    ledger_file_name: str = "installed-frameworks.json"

    # Validation
    required_sections: tuple[str, ...] = DEFAULT_REQUIRED_SECTIONS
    validate_after_install: bool = False

    # Search limits
    search_context_lines: int = Field(default=1, ge=0, le=20)
    max_query_length: int = Field(default=256, ge=1)
    max_results: int = Field(default=200, ge=1)
    max_scan_bytes: int = Field(default=2 * 1024 * 1024, ge=1)

    @property
    def steering_path(self) -> Path:
        return self.workspace_root / self.steering_dir

    @property
    def metadata_path(self) -> Path:
        return self.workspace_root / self.metadata_dir

    @property
    def manifest_path(self) -> Path:
        return self.resources_dir / self.manifest_file_name

    @property
    def ledger_path(self) -> Path:
        return self.metadata_path / self.ledger_file_name

    @classmethod
    def from_pyproject(
        cls,
        pyproject_path: Path,
        workspace_root: Path,
        resources_dir: Path,
    ) -> "FrameworkSettings":
        """
        Load settings overrides from the [tool.steering-frameworks] table.

        A missing file or table yields defaults.

        Args:
            pyproject_path: Path to pyproject.toml
            workspace_root: Workspace the frameworks are installed into
            resources_dir: Directory holding manifest.json and canonical documents

        Returns:
            FrameworkSettings instance

        Raises:
            tomllib.TOMLDecodeError: If invalid TOML
            pydantic.ValidationError: If the table has unknown or invalid keys

        Example:
            [tool.steering-frameworks]
            steering_dir = "docs/steering"
            required_sections = ["Purpose", "Summary"]
            validate_after_install = true
        """
        overrides: dict = {}
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                data = tomllib.load(f)
            overrides = data.get("tool", {}).get("steering-frameworks", {})

        return cls.model_validate({**overrides, "workspace_root": workspace_root, "resources_dir": resources_dir})
