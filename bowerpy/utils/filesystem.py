"""本地文件系统实现

所有路径 (key) 都相对存储根目录解析，前导 "/" 被忽略；
解析结果逃出根目录时拒绝访问。写入采用原子方式：先写临时文件再 rename。
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import IO

from bowerpy.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_COPY_CHUNK = 64 * 1024


def atomic_write(path: Path, content: bytes | IO[bytes]) -> int:
    """原子写入文件，返回写入字节数

    实现:
        1. 在同目录创建临时文件
        2. 写入内容到临时文件（文件对象按块复制）
        3. os.replace 原子替换目标文件
        4. 失败时清理临时文件
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            if isinstance(content, (bytes, bytearray)):
                f.write(content)
            else:
                shutil.copyfileobj(content, f, _COPY_CHUNK)
            written = f.tell()
        os.replace(tmp, str(path))
    except Exception:
        # 只捕获普通异常，不拦截 KeyboardInterrupt/SystemExit
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
    return written


class LocalFilesystem:
    """以本地目录为根的文件系统"""

    def __init__(self, root: str | Path = "/") -> None:
        self.root = Path(root).expanduser().resolve()

    def _resolve(self, key: str) -> Path:
        path = (self.root / key.lstrip("/")).resolve()
        if path != self.root and not path.is_relative_to(self.root):
            raise ValidationError(f"路径超出存储根目录 {self.root}: {key}")
        return path

    def local_path(self, key: str) -> str:
        return str(self._resolve(key))

    def has(self, key: str) -> bool:
        return self._resolve(key).exists()

    def read(self, key: str) -> bytes:
        return self._resolve(key).read_bytes()

    def write(self, key: str, content: bytes | IO[bytes], overwrite: bool = False) -> int:
        path = self._resolve(key)
        if not overwrite and path.exists():
            raise FileExistsError(f"文件已存在: {key}")
        return atomic_write(path, content)

    def rename(self, source: str, target: str, overwrite: bool = False) -> None:
        src, dst = self._resolve(source), self._resolve(target)
        if not overwrite and dst.exists():
            raise FileExistsError(f"文件已存在: {target}")
        dst.parent.mkdir(parents=True, exist_ok=True)
        os.replace(src, dst)

    def delete(self, key: str) -> bool:
        path = self._resolve(key)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def delete_tree(self, key: str) -> bool:
        path = self._resolve(key)
        if path == self.root:
            raise ValidationError("拒绝删除存储根目录")
        if not path.exists():
            return False
        if path.is_dir():
            shutil.rmtree(path)
        else:
            path.unlink()
        logger.debug("已删除: %s", path)
        return True

    def list_dir(self, key: str) -> list[str]:
        path = self._resolve(key)
        if not path.is_dir():
            return []
        return sorted(p.name for p in path.iterdir())
