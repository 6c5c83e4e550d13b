"""zip 归档读取器测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from bowerpy.utils.archive import ZipArchiveReader
from conftest import make_corrupt_zip, make_raw_zip


def _write(tmp_path: Path, blob: bytes) -> str:
    path = tmp_path / "release.zip"
    path.write_bytes(blob)
    return str(path)


class TestZipArchiveReader:
    def test_entries_in_archive_order(self, tmp_path: Path) -> None:
        path = _write(tmp_path, make_raw_zip([
            ("root/", b""), ("root/z.js", b"zz"), ("root/lib/", b""), ("root/a.js", b"a"),
        ]))
        with ZipArchiveReader().open(path) as handle:
            assert handle.entry_count() == 4
            assert handle.entry_name_at(0) == "root/"
            stats = [handle.entry_stat_at(i) for i in range(4)]
        assert [(s.path, s.size) for s in stats] == [
            ("root/", 0), ("root/z.js", 2), ("root/lib/", 0), ("root/a.js", 1),
        ]
        assert stats[2].is_dir and not stats[1].is_dir

    def test_stream(self, tmp_path: Path) -> None:
        path = _write(tmp_path, make_raw_zip([("root/", b""), ("root/a.js", b"content")]))
        handle = ZipArchiveReader().open(path)
        try:
            with handle.stream("root/a.js") as f:
                assert f.read() == b"content"
            with pytest.raises(ValueError, match="无法读取归档条目"):
                handle.stream("root/missing.js")
        finally:
            handle.close()

    def test_corrupt_deflate_data(self, tmp_path: Path) -> None:
        path = _write(tmp_path, make_corrupt_zip("root", "a.js"))
        with ZipArchiveReader().open(path) as handle:
            assert handle.entry_count() == 2
            with pytest.raises(ValueError, match="无法读取归档条目 root/a.js"):
                handle.stream("root/a.js")

    def test_not_a_zip(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="不是合法的 zip"):
            ZipArchiveReader().open(_write(tmp_path, b"<html>404</html>"))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            ZipArchiveReader().open(str(tmp_path / "nope.zip"))
