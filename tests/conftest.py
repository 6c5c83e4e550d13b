"""测试共享 fixture - 内存中的注册表/仓库 + 真实 zip 与本地文件系统

整体结构:

  FakeWorld.publish()          Installer                     tmp_path
  ┌──────────────────┐   ┌──────────────────────┐   ┌─────────────────────┐
  │ 注册表路由 (http) │──>│ RegistryClient.lookup│   │ components/<包名>/  │
  │ 仓库清单 + 归档   │──>│ FakeRepository       │──>│ cache/tmp/          │
  └──────────────────┘   └──────────────────────┘   └─────────────────────┘

- 网络请求全部走 FakeHttp，可断言请求次数
- 仓库下载记录在 world.downloads，可断言哪些包被重新解压
- 文件系统是 tmp_path 下的真实目录，写入/移动记录在 fs.writes / fs.renames
"""

from __future__ import annotations

import io
import json
import struct
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Callable

import pytest

from bowerpy.core.exceptions import HttpError
from bowerpy.core.installer import Installer
from bowerpy.core.models import HttpResponse
from bowerpy.core.protocols import VersionPolicy
from bowerpy.core.registry import RegistryClient
from bowerpy.core.versioning import max_satisfying
from bowerpy.utils.archive import ZipArchiveReader
from bowerpy.utils.filesystem import LocalFilesystem

REGISTRY_BASE = "https://registry.test/packages/"


def make_zip(
    root: str,
    files: dict[str, bytes],
    dirs: tuple[str, ...] = (),
) -> bytes:
    """构造 GitHub zipball 风格的归档：第一个条目是唯一的顶层目录"""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(f"{root}/", b"")
        for d in dirs:
            zf.writestr(f"{root}/{d.strip('/')}/", b"")
        for path, content in files.items():
            zf.writestr(f"{root}/{path}", content)
    return buf.getvalue()


def make_raw_zip(entries: list[tuple[str, bytes]]) -> bytes:
    """按给定顺序写入任意条目"""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in entries:
            zf.writestr(name, content)
    return buf.getvalue()


def make_corrupt_zip(root: str, filename: str) -> bytes:
    """目录结构完好、但条目的 deflate 数据被破坏的归档"""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(f"{root}/", b"")
        zf.writestr(f"{root}/{filename}", b"console.log('hello');\n" * 200)
        offset = zf.getinfo(f"{root}/{filename}").header_offset
    data = bytearray(buf.getvalue())
    # 本地文件头: 30 字节定长部分 + 文件名 + extra
    name_len, extra_len = struct.unpack("<HH", data[offset + 26:offset + 30])
    start = offset + 30 + name_len + extra_len
    data[start:start + 20] = b"\xff" * 20
    return bytes(data)


# =========================================================================
# 网络 / 仓库替身
# =========================================================================


class FakeHttp:
    """按 url 返回预置响应；未注册的 url 返回 404"""

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.calls: list[str] = []

    def get(self, url: str, headers: dict[str, str] | None = None) -> HttpResponse:
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            raise HttpError(url, "Not Found", status=404)
        if isinstance(route, Exception):
            raise route
        body = route if isinstance(route, bytes) else json.dumps(route).encode()
        return HttpResponse(status=200, body=body)


@dataclass
class RemotePackage:
    name: str
    manifest: Any = None
    releases: dict[str, bytes] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return f"git://github.com/test/{self.name}.git"


class FakeRepository:
    """满足 PackageRepository 协议的内存仓库"""

    def __init__(self, remote: RemotePackage, downloads: list[tuple[str, str]]) -> None:
        self.remote = remote
        self.downloads = downloads
        self.resolved: str | None = None

    @property
    def url(self) -> str:
        return self.remote.url

    def get_manifest(self) -> str:
        if isinstance(self.remote.manifest, str):
            return self.remote.manifest
        return json.dumps(self.remote.manifest)

    def find_package(self, constraint: str) -> str | None:
        self.resolved = max_satisfying(self.remote.releases, constraint)
        return self.resolved

    def get_release(self) -> bytes:
        assert self.resolved is not None
        self.downloads.append((self.remote.name, self.resolved))
        return self.remote.releases[self.resolved]


class FakeWorld:
    """注册表 + 仓库的内存模拟"""

    def __init__(self) -> None:
        self.http = FakeHttp()
        self.packages: dict[str, RemotePackage] = {}
        self.downloads: list[tuple[str, str]] = []
        self.repositories: list[FakeRepository] = []

    def publish(
        self,
        name: str,
        version: str,
        *,
        files: dict[str, bytes] | None = None,
        deps: dict[str, str] | None = None,
        root: str = "",
        dirs: tuple[str, ...] = (),
        archive: bytes | None = None,
    ) -> RemotePackage:
        """发布一个版本；仓库清单取最后一次发布的版本"""
        remote = self.packages.setdefault(name, RemotePackage(name))
        manifest = {"name": name, "version": version, "dependencies": deps or {}}
        content = {"bower.json": json.dumps(manifest).encode()}
        content.update(files or {})
        remote.releases[version] = archive if archive is not None else make_zip(
            root or f"{name}-{version}", content, dirs,
        )
        remote.manifest = manifest
        self.http.routes[REGISTRY_BASE + name] = {"name": name, "url": remote.url}
        return remote

    def registry_url(self, name: str) -> str:
        return REGISTRY_BASE + name

    def factory(self, url: str, http: Any) -> FakeRepository:
        remote = next(p for p in self.packages.values() if p.url == url)
        repo = FakeRepository(remote, self.downloads)
        self.repositories.append(repo)
        return repo


# =========================================================================
# 文件系统
# =========================================================================


class RecordingFilesystem(LocalFilesystem):
    """记录所有写入和移动的本地文件系统"""

    def __init__(self, root: Path) -> None:
        super().__init__(root)
        self.writes: list[str] = []
        self.renames: list[tuple[str, str]] = []

    def write(self, key: str, content: bytes | IO[bytes], overwrite: bool = False) -> int:
        self.writes.append(key)
        return super().write(key, content, overwrite)

    def rename(self, source: str, target: str, overwrite: bool = False) -> None:
        self.renames.append((source, target))
        super().rename(source, target, overwrite)


def install_locally(root: Path, name: str, version: str, filename: str = "bower.json") -> Path:
    """伪造一个已安装的包"""
    pkg_dir = root / "components" / name
    pkg_dir.mkdir(parents=True, exist_ok=True)
    (pkg_dir / filename).write_text(json.dumps({"name": name, "version": version}))
    return pkg_dir


# =========================================================================
# Fixtures
# =========================================================================


@pytest.fixture()
def world() -> FakeWorld:
    return FakeWorld()


@pytest.fixture()
def fs(tmp_path: Path) -> RecordingFilesystem:
    return RecordingFilesystem(tmp_path)


@pytest.fixture()
def make_installer(
    world: FakeWorld, fs: RecordingFilesystem,
) -> Callable[..., Installer]:
    def _make(policy: VersionPolicy | None = None) -> Installer:
        return Installer(
            fs,
            world.http,
            RegistryClient(world.http, REGISTRY_BASE),
            world.factory,
            ZipArchiveReader(),
            install_dir="components",
            cache_dir="cache",
            version_policy=policy,
        )
    return _make


@pytest.fixture()
def installer(make_installer: Callable[..., Installer]) -> Installer:
    return make_installer()
