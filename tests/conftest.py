"""Shared fixtures: a bundled-resources directory, settings and a manager."""

import json
from pathlib import Path

import pytest
from steering_frameworks import FrameworkIOError
from steering_frameworks import FrameworkManager
from steering_frameworks import FrameworkSettings
from steering_frameworks import LocalFileSystem


def make_document(title: str, version: str) -> str:
    """Canonical framework document that passes validation."""
    return f"""# {title}

Version {version}

## Purpose

Describe how the team applies {title} on every change so that the downstream
agent produces consistent results across the whole repository.

## Key Concepts

- Write the failing test first
- Keep each scenario focused on one behavior
- Refactor only when the suite is green

## Best Practices

1. Run the suite before pushing
2. Name tests after the behavior they verify

```python
def test_adds_numbers():
    assert add(2, 3) == 5
```

## Summary

Small, verified steps keep feedback fast and the codebase releasable.
"""


DEFAULT_FRAMEWORKS = [
    {
        "id": "tdd-bdd-strategy",
        "name": "TDD/BDD Testing Strategy",
        "description": "Test-driven and behavior-driven development practices",
        "category": "testing",
        "version": "1.0.0",
        "fileName": "strategy-tdd-bdd.md",
        "dependencies": [],
    },
    {
        "id": "security-baseline",
        "name": "Security Baseline",
        "description": "Secure defaults for secrets, dependencies and input handling",
        "category": "security",
        "version": "1.0.0",
        "fileName": "strategy-security.md",
        "dependencies": [],
    },
    {
        "id": "cloud-native",
        "name": "Cloud Native Architecture",
        "description": "Twelve-factor services on managed infrastructure",
        "category": "cloud",
        "version": "2.0.0",
        "fileName": "strategy-cloud.md",
        "dependencies": ["security-baseline"],
    },
]


class Resources:
    """Bundled framework resources (manifest.json plus one document per framework)."""

    def __init__(self, root: Path):
        self.root = root
        self.frameworks = [dict(f) for f in DEFAULT_FRAMEWORKS]
        self.root.mkdir(parents=True, exist_ok=True)
        for framework in self.frameworks:
            self.write_content(framework["id"], make_document(framework["name"], framework["version"]))
        self.write_manifest()

    def write_manifest(self) -> None:
        manifest = {"version": "1.0.0", "frameworks": self.frameworks}
        (self.root / "manifest.json").write_text(json.dumps(manifest, indent=2))

    def get(self, framework_id: str) -> dict:
        return next(f for f in self.frameworks if f["id"] == framework_id)

    def content_path(self, framework_id: str) -> Path:
        return self.root / self.get(framework_id)["fileName"]

    def content(self, framework_id: str) -> str:
        return self.content_path(framework_id).read_text()

    def write_content(self, framework_id: str, content: str) -> None:
        self.content_path(framework_id).write_text(content)

    def release(self, framework_id: str, version: str) -> str:
        """Publish a new catalog version with new canonical content."""
        framework = self.get(framework_id)
        framework["version"] = version
        content = make_document(framework["name"], version)
        self.write_content(framework_id, content)
        self.write_manifest()
        return content


class FailingFileSystem(LocalFileSystem):
    """LocalFileSystem that fails writes to files whose name is in `fail_on`."""

    def __init__(self):
        self.fail_on: set[str] = set()

    async def write_file(self, path: Path, content: str) -> None:
        if path.name in self.fail_on:
            raise FrameworkIOError(
                f"Failed to write {path}: No space left on device (errno 28)",
                context={"path": str(path)},
                errno=28,
                strerror="No space left on device",
            )
        await super().write_file(path, content)


@pytest.fixture
def resources(tmp_path) -> Resources:
    return Resources(tmp_path / "resources" / "frameworks")


@pytest.fixture
def settings(tmp_path, resources) -> FrameworkSettings:
    return FrameworkSettings(workspace_root=tmp_path / "workspace", resources_dir=resources.root)


@pytest.fixture
def manager(settings) -> FrameworkManager:
    return FrameworkManager(settings)


@pytest.fixture
def failing_file_system() -> FailingFileSystem:
    return FailingFileSystem()
