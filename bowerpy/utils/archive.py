"""zip 归档读取器

按索引枚举条目（保持归档内原始顺序），按名称读取内容。
条目内容一次性读入内存后以文件对象返回，CRC 校验失败、压缩数据损坏、
不支持的压缩方法、加密条目等错误统一转为 ValueError。
"""

from __future__ import annotations

import io
import zipfile
import zlib
from typing import IO

from bowerpy.core.models import ArchiveEntry


class ZipArchiveHandle:
    """已打开的 zip 归档，支持 with 语句"""

    def __init__(self, zf: zipfile.ZipFile) -> None:
        self._zf = zf
        self._infos = zf.infolist()

    def entry_count(self) -> int:
        return len(self._infos)

    def entry_name_at(self, index: int) -> str:
        return self._infos[index].filename

    def entry_stat_at(self, index: int) -> ArchiveEntry:
        info = self._infos[index]
        size = 0 if info.is_dir() else info.file_size
        return ArchiveEntry(path=info.filename, size=size)

    def stream(self, name: str) -> IO[bytes]:
        try:
            return io.BytesIO(self._zf.read(name))
        # zlib.error / EOFError: 压缩数据损坏或截断
        # NotImplementedError: 不支持的压缩方法; RuntimeError: 加密条目
        except (zipfile.BadZipFile, KeyError, zlib.error, EOFError,
                NotImplementedError, RuntimeError) as e:
            raise ValueError(f"无法读取归档条目 {name}: {e}") from e

    def close(self) -> None:
        self._zf.close()

    def __enter__(self) -> ZipArchiveHandle:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class ZipArchiveReader:
    """打开 zip 文件；不存在时抛 OSError，不是合法 zip 时抛 ValueError"""

    def open(self, path: str) -> ZipArchiveHandle:
        try:
            zf = zipfile.ZipFile(path)
        except zipfile.BadZipFile as e:
            raise ValueError(f"不是合法的 zip 文件: {e}") from e
        return ZipArchiveHandle(zf)
