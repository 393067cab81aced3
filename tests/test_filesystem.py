"""Tests for LocalFileSystem."""

import pytest
from steering_frameworks import FrameworkIOError
from steering_frameworks import LocalFileSystem


@pytest.fixture
def fs() -> LocalFileSystem:
    return LocalFileSystem()


@pytest.mark.asyncio
async def test_write_and_read_roundtrip_bytes(fs, tmp_path):
    """Test content is stored as UTF-8 without newline translation."""
    path = tmp_path / "nested" / "doc.md"

    await fs.write_file(path, "line one\r\nünïcode ✓\n")

    assert path.read_bytes() == "line one\r\nünïcode ✓\n".encode("utf-8")
    assert await fs.read_file(path) == "line one\r\nünïcode ✓\n"


@pytest.mark.asyncio
async def test_write_replaces_and_cleans_temp_files(fs, tmp_path):
    path = tmp_path / "doc.md"
    await fs.write_file(path, "old")

    await fs.write_file(path, "new")

    assert path.read_text() == "new"
    assert [p.name for p in tmp_path.iterdir()] == ["doc.md"]


@pytest.mark.asyncio
async def test_read_missing_file(fs, tmp_path):
    with pytest.raises(FrameworkIOError) as exc_info:
        await fs.read_file(tmp_path / "missing.md")

    assert exc_info.value.errno == 2
    assert exc_info.value.context["action"] == "read"


@pytest.mark.asyncio
async def test_read_invalid_utf8(fs, tmp_path):
    path = tmp_path / "binary.md"
    path.write_bytes(b"\xff\xfe\x00")

    with pytest.raises(FrameworkIOError, match="not valid UTF-8"):
        await fs.read_file(path)


@pytest.mark.asyncio
async def test_copy_move_delete(fs, tmp_path):
    source = tmp_path / "a.md"
    source.write_text("content")

    await fs.copy_file(source, tmp_path / "copies" / "b.md")
    await fs.move_file(source, tmp_path / "c.md")

    assert (tmp_path / "copies" / "b.md").read_text() == "content"
    assert not await fs.file_exists(source)
    assert await fs.file_exists(tmp_path / "c.md")

    await fs.delete_file(tmp_path / "c.md")
    await fs.delete_file(tmp_path / "c.md")
    assert not await fs.file_exists(tmp_path / "c.md")


@pytest.mark.asyncio
async def test_exists_distinguishes_files_and_directories(fs, tmp_path):
    (tmp_path / "doc.md").write_text("x")

    assert await fs.file_exists(tmp_path / "doc.md")
    assert not await fs.file_exists(tmp_path)
    assert await fs.directory_exists(tmp_path)
    assert not await fs.directory_exists(tmp_path / "doc.md")


@pytest.mark.asyncio
async def test_list_files(fs, tmp_path):
    for name in ["b.md", "a.md", "notes.txt", "a.md.backup-2025"]:
        (tmp_path / name).write_text("x")
    (tmp_path / "sub.md").mkdir()

    assert [p.name for p in await fs.list_files(tmp_path, "*.md")] == ["a.md", "b.md"]
    assert len(await fs.list_files(tmp_path)) == 4
    assert await fs.list_files(tmp_path / "missing") == []
