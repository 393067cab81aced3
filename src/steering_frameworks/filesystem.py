"""Local disk implementation of FileSystemProtocol.

Writes go to a temp file in the target directory followed by os.replace, so
readers only ever see the old or the new content, never a partial file.
"""

import fnmatch
import logging
import os
import shutil
import tempfile
from pathlib import Path

from .exceptions import FrameworkIOError

logger = logging.getLogger(__name__)


def _wrap_os_error(action: str, path: Path, error: OSError) -> FrameworkIOError:
    """Convert an OSError into FrameworkIOError keeping the OS code and text."""
    code = error.errno
    code_name = os.strerror(code) if code else "unknown error"
    return FrameworkIOError(
        f"Failed to {action} {path}: {error.strerror or code_name} (errno {code})",
        context={"path": str(path), "action": action},
        errno=code,
        strerror=error.strerror or str(error),
    )


class LocalFileSystem:
    """File system collaborator backed by the local disk."""

    async def read_file(self, path: Path) -> str:
        try:
            # Bytes, not text mode: newline translation would change the hash
            return path.read_bytes().decode("utf-8")
        except OSError as e:
            raise _wrap_os_error("read", path, e) from e
        except UnicodeDecodeError as e:
            raise FrameworkIOError(
                f"Failed to read {path}: not valid UTF-8 ({e})",
                context={"path": str(path), "action": "read"},
            ) from e

    async def write_file(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.tmp.", dir=str(path.parent))
        except OSError as e:
            raise _wrap_os_error("write", path, e) from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content.encode("utf-8"))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            logger.debug(f"Wrote {len(content)} characters to {path}")
        except OSError as e:
            raise _wrap_os_error("write", path, e) from e
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError as e:
                    logger.warning(f"Could not remove temp file {tmp_path}: {e}")

    async def copy_file(self, source: Path, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
        except OSError as e:
            raise _wrap_os_error(f"copy {source} to", destination, e) from e

    async def move_file(self, source: Path, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            os.replace(source, destination)
        except OSError as e:
            raise _wrap_os_error(f"move {source} to", destination, e) from e

    async def delete_file(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise _wrap_os_error("delete", path, e) from e

    async def file_exists(self, path: Path) -> bool:
        try:
            return path.is_file()
        except OSError as e:
            raise _wrap_os_error("stat", path, e) from e

    async def directory_exists(self, path: Path) -> bool:
        try:
            return path.is_dir()
        except OSError as e:
            raise _wrap_os_error("stat", path, e) from e

    async def list_files(self, directory: Path, pattern: str | None = None) -> list[Path]:
        if not directory.is_dir():
            return []
        try:
            files = [item for item in directory.iterdir() if item.is_file()]
        except OSError as e:
            raise _wrap_os_error("list", directory, e) from e

        if pattern:
            files = [item for item in files if fnmatch.fnmatchcase(item.name, pattern)]
        return sorted(files)
