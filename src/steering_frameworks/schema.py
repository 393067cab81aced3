"""Framework catalog schema - Parse and validate manifest.json.

The manifest is untrusted JSON shipped next to the framework documents.
Everything is validated at load time: unknown keys, missing keys, malformed
versions, duplicate ids and dangling dependencies are rejected up front
instead of surfacing later as attribute errors.
"""

import functools
import json
import re
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator
from pydantic import model_validator

from .exceptions import ManifestCorruptError

_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """Parsed semantic version with semver precedence rules.

    Pre-release versions sort below the matching release; build metadata is
    ignored for comparison.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    @classmethod
    def parse(cls, value: str) -> "SemanticVersion":
        """Parse `MAJOR.MINOR.PATCH[-pre][+build]`.

        Raises:
            ValueError: If value is not a semantic version
        """
        match = _SEMVER_RE.match(value.strip()) if isinstance(value, str) else None
        if not match:
            raise ValueError(f"Invalid semantic version: {value!r}")

        major, minor, patch, prerelease, build = match.groups()
        return cls(
            major=int(major),
            minor=int(minor),
            patch=int(patch),
            prerelease=tuple(prerelease.split(".")) if prerelease else (),
            build=tuple(build.split(".")) if build else (),
        )

    def _key(self) -> tuple:
        if not self.prerelease:
            pre: tuple = (1,)
        else:
            # Numeric identifiers sort below alphanumeric ones
            pre = (0, tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in self.prerelease))
        return (self.major, self.minor, self.patch, pre)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


def is_newer_version(candidate: str, current: str) -> bool:
    """True if `candidate` is strictly greater than `current` (semver precedence)."""
    return SemanticVersion.parse(candidate) > SemanticVersion.parse(current)


class FrameworkCategory(str, Enum):
    """Catalog category of a framework."""

    ARCHITECTURE = "architecture"
    TESTING = "testing"
    SECURITY = "security"
    DEVOPS = "devops"
    CLOUD = "cloud"
    INFRASTRUCTURE = "infrastructure"
    WORK_MANAGEMENT = "work-management"


class FrameworkDescriptor(BaseModel):
    """
    Catalog entry describing one installable framework document.

    Field names follow Python conventions; the manifest's camelCase
    `fileName` is accepted through its alias.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    category: FrameworkCategory
    version: str
    file_name: str = Field(alias="fileName", min_length=1)
    dependencies: list[str] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _validate_version(cls, value: str) -> str:
        SemanticVersion.parse(value)
        return value

    @field_validator("file_name")
    @classmethod
    def _validate_file_name(cls, value: str) -> str:
        # Content is written to steering_dir / file_name; keep it inside that directory
        if "/" in value or "\\" in value or value in (".", "..") or value.startswith("."):
            raise ValueError(f"fileName must be a plain file name, got {value!r}")
        return value

    @property
    def semantic_version(self) -> SemanticVersion:
        return SemanticVersion.parse(self.version)


class FrameworkManifest(BaseModel):
    """
    Parsed manifest.json.

    Format:
    {
      "version": "1.0.0",
      "frameworks": [
        {
          "id": "tdd-bdd-strategy",
          "name": "TDD/BDD Testing Strategy",
          "description": "...",
          "category": "testing",
          "version": "1.0.0",
          "fileName": "strategy-tdd-bdd.md",
          "dependencies": []
        }
      ]
    }
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str
    frameworks: list[FrameworkDescriptor] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_references(self) -> "FrameworkManifest":
        ids: set[str] = set()
        file_names: set[str] = set()
        for descriptor in self.frameworks:
            if descriptor.id in ids:
                raise ValueError(f"Duplicate framework id: {descriptor.id!r}")
            if descriptor.file_name in file_names:
                raise ValueError(f"Duplicate fileName: {descriptor.file_name!r}")
            ids.add(descriptor.id)
            file_names.add(descriptor.file_name)

        for descriptor in self.frameworks:
            for dependency in descriptor.dependencies:
                if dependency == descriptor.id:
                    raise ValueError(f"Framework {descriptor.id!r} depends on itself")
                if dependency not in ids:
                    raise ValueError(f"Framework {descriptor.id!r} depends on unknown framework {dependency!r}")
        return self

    @classmethod
    def from_json(cls, text: str, source: str = "<manifest>") -> "FrameworkManifest":
        """
        Parse manifest JSON text.

        Args:
            text: Raw manifest content
            source: Path or label used in error messages

        Returns:
            FrameworkManifest instance

        Raises:
            ManifestCorruptError: If JSON is malformed or fails validation
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ManifestCorruptError(
                f"Manifest {source} is not valid JSON: {e}",
                context={"path": source},
            ) from e

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ManifestCorruptError(
                f"Manifest {source} failed validation: {e}",
                context={"path": source, "errors": e.errors(include_url=False)},
            ) from e

    def get(self, framework_id: str) -> FrameworkDescriptor | None:
        for descriptor in self.frameworks:
            if descriptor.id == framework_id:
                return descriptor
        return None
