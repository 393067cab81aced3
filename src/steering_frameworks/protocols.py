"""Protocols for the file system collaborator.

Apps can provide any implementation (local disk, in-memory, remote workspace).
The library only requires this interface.
"""

from pathlib import Path
from typing import Protocol


class FileSystemProtocol(Protocol):
    """Async, whole-file access used by the catalog, ledger and installer.

    Implementations wrap OS failures in FrameworkIOError (keeping the OS error
    code and message) and never retry. Text is UTF-8 and must round-trip
    byte-exactly, since content hashes are computed over it.
    """

    async def read_file(self, path: Path) -> str:
        """Read the whole file as UTF-8 text."""
        ...

    async def write_file(self, path: Path, content: str) -> None:
        """Replace the file with `content` atomically, creating parent directories."""
        ...

    async def copy_file(self, source: Path, destination: Path) -> None:
        """Copy `source` to `destination`, creating parent directories."""
        ...

    async def move_file(self, source: Path, destination: Path) -> None:
        """Rename `source` to `destination`."""
        ...

    async def delete_file(self, path: Path) -> None:
        """Delete the file. Deleting a missing file is not an error."""
        ...

    async def file_exists(self, path: Path) -> bool:
        """True if `path` is an existing regular file."""
        ...

    async def directory_exists(self, path: Path) -> bool:
        """True if `path` is an existing directory."""
        ...

    async def list_files(self, directory: Path, pattern: str | None = None) -> list[Path]:
        """List regular files directly inside `directory`, filtered by glob `pattern`.

        A missing directory yields an empty list.
        """
        ...
