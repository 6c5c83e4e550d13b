"""本地文件系统测试"""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from bowerpy.core.exceptions import ValidationError
from bowerpy.utils.filesystem import LocalFilesystem, atomic_write


@pytest.fixture()
def lfs(tmp_path: Path) -> LocalFilesystem:
    return LocalFilesystem(tmp_path)


class TestAtomicWrite:
    def test_bytes(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b.txt"
        assert atomic_write(target, b"hello") == 5
        assert target.read_bytes() == b"hello"

    def test_stream(self, tmp_path: Path) -> None:
        target = tmp_path / "big.bin"
        assert atomic_write(target, io.BytesIO(b"x" * 200_000)) == 200_000
        assert list(tmp_path.iterdir()) == [target]


class TestLocalFilesystem:
    def test_write_and_read(self, lfs: LocalFilesystem, tmp_path: Path) -> None:
        lfs.write("/x/y.txt", b"data")
        assert lfs.has("x/y.txt")
        assert lfs.read("/x/y.txt") == b"data"
        assert (tmp_path / "x/y.txt").exists()

    def test_write_refuses_overwrite_by_default(self, lfs: LocalFilesystem) -> None:
        lfs.write("f", b"1")
        with pytest.raises(FileExistsError):
            lfs.write("f", b"2")
        lfs.write("f", b"2", overwrite=True)
        assert lfs.read("f") == b"2"

    def test_escape_root_rejected(self, lfs: LocalFilesystem) -> None:
        with pytest.raises(ValidationError, match="超出存储根目录"):
            lfs.write("../outside.txt", b"x")
        with pytest.raises(ValidationError):
            lfs.has("a/../../outside.txt")

    def test_rename(self, lfs: LocalFilesystem) -> None:
        lfs.write("src/a", b"A")
        lfs.write("dst/a", b"old")
        with pytest.raises(FileExistsError):
            lfs.rename("src/a", "dst/a")
        lfs.rename("src/a", "dst/a", overwrite=True)
        assert lfs.read("dst/a") == b"A"
        assert not lfs.has("src/a")

    def test_rename_creates_parents(self, lfs: LocalFilesystem) -> None:
        lfs.write("a", b"A")
        lfs.rename("a", "deep/nested/a")
        assert lfs.read("deep/nested/a") == b"A"

    def test_delete(self, lfs: LocalFilesystem) -> None:
        lfs.write("d/f", b"x")
        assert not lfs.delete("d")
        assert lfs.delete("d/f")
        assert not lfs.delete("d/f")

    def test_delete_tree(self, lfs: LocalFilesystem) -> None:
        lfs.write("pkg/a", b"1")
        lfs.write("pkg/sub/b", b"2")
        assert lfs.delete_tree("pkg")
        assert not lfs.has("pkg")
        assert not lfs.delete_tree("pkg")

    def test_delete_tree_refuses_root(self, lfs: LocalFilesystem) -> None:
        with pytest.raises(ValidationError, match="拒绝删除"):
            lfs.delete_tree("/")

    def test_list_dir(self, lfs: LocalFilesystem) -> None:
        lfs.write("c/b", b"")
        lfs.write("c/a/x", b"")
        assert lfs.list_dir("c") == ["a", "b"]
        assert lfs.list_dir("c/b") == []
        assert lfs.list_dir("missing") == []

    def test_local_path(self, lfs: LocalFilesystem) -> None:
        assert lfs.local_path("/a/b") == str(lfs.root / "a" / "b")
