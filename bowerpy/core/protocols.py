"""领域协议定义

集中定义安装器与外部协作者之间的接口契约（Protocol），
安装器只依赖这些抽象，具体实现由 ServiceContainer 注入。

使用 typing.Protocol 而非 ABC，测试替身无需继承即可满足协议。
"""

from __future__ import annotations

from typing import IO, Callable, Protocol

from bowerpy.core.models import ArchiveEntry, HttpResponse


# =========================================================================
# 网络
# =========================================================================

class HttpClient(Protocol):
    """HTTP 客户端协议"""

    def get(self, url: str, headers: dict[str, str] | None = None) -> HttpResponse:
        """GET 请求；传输失败或非 2xx 抛 HttpError"""
        ...


# =========================================================================
# 源码仓库
# =========================================================================

class PackageRepository(Protocol):
    """包源码仓库协议

    绑定到注册表返回的 url，负责清单获取、版本解析和发布归档下载。
    """

    @property
    def url(self) -> str:
        ...

    def get_manifest(self) -> str:
        """返回原始清单文本（bower.json 等价物）"""
        ...

    def find_package(self, constraint: str) -> str | None:
        """按约束解析出一个具体版本，找不到返回 None"""
        ...

    def get_release(self) -> bytes:
        """下载上一次 find_package 解析出的版本的归档"""
        ...


# 由 (url, http_client) 构造仓库实例
RepositoryFactory = Callable[[str, HttpClient], PackageRepository]


# =========================================================================
# 文件系统
# =========================================================================

class Filesystem(Protocol):
    """虚拟文件系统协议：路径均相对存储根目录"""

    def has(self, key: str) -> bool:
        ...

    def read(self, key: str) -> bytes:
        ...

    def write(self, key: str, content: bytes | IO[bytes], overwrite: bool = False) -> int:
        """写入内容，返回写入字节数；overwrite=False 且已存在时抛 FileExistsError"""
        ...

    def rename(self, source: str, target: str, overwrite: bool = False) -> None:
        ...

    def delete(self, key: str) -> bool:
        ...

    def delete_tree(self, key: str) -> bool:
        ...

    def list_dir(self, key: str) -> list[str]:
        ...

    def local_path(self, key: str) -> str:
        """返回 key 对应的本地真实路径（供归档读取器打开）"""
        ...


# =========================================================================
# 归档
# =========================================================================

class ArchiveHandle(Protocol):
    """已打开的归档"""

    def entry_count(self) -> int:
        ...

    def entry_name_at(self, index: int) -> str:
        ...

    def entry_stat_at(self, index: int) -> ArchiveEntry:
        ...

    def stream(self, name: str) -> IO[bytes]:
        ...

    def close(self) -> None:
        ...


class ArchiveReader(Protocol):
    """归档读取器协议；无法打开时抛 OSError 或 ValueError"""

    def open(self, path: str) -> ArchiveHandle:
        ...


# =========================================================================
# 版本比较
# =========================================================================

class VersionPolicy(Protocol):
    """已安装版本与请求版本的比较策略"""

    name: str

    def is_satisfied(self, installed: str, constraint: str) -> bool:
        """已安装版本是否已满足请求的约束（满足则 update 直接返回）"""
        ...

    def same_release(self, installed: str, resolved: str) -> bool:
        """远程解析出的版本是否就是已安装版本"""
        ...
