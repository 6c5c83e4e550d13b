"""包安装器

install:
  注册表查询 -> 仓库清单 -> 版本解析 -> 下载归档 -> 解压放置，
  然后对清单里的每个依赖无条件执行 install（即使本地已存在其他版本）。

update:
  读取本地清单，版本与请求一致则直接返回（不访问网络、不写文件）；
  否则走 install 的解析流程，远程解析出的版本仍与本地一致时同样直接返回，
  不一致才重新解压。依赖按本地是否已安装分别执行 install / update。

依赖遍历使用显式栈（深度优先，顺序与递归一致），并按 (包名, 解析版本)
记录已处理的包，依赖环因此会终止。任何错误立即中止整个遍历。

用法:
    installer = get_container().installer
    installer.install(Package.from_spec("jquery#~2.1"))
    installer.update(Package("jquery", "2.2.4"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bowerpy.core.exceptions import (
    InstallerError,
    PackageNotInstalledError,
    VersionNotFoundError,
)
from bowerpy.core.extractor import ReleaseExtractor
from bowerpy.core.models import MANIFEST_FILES, Manifest, Package
from bowerpy.core.protocols import (
    ArchiveReader,
    Filesystem,
    HttpClient,
    RepositoryFactory,
    VersionPolicy,
)
from bowerpy.core.registry import RegistryClient
from bowerpy.core.versioning import ExactVersionPolicy

logger = logging.getLogger(__name__)

INSTALL = "install"
UPDATE = "update"
# update 遍历到的依赖：未安装则 install，已安装则 update
FOLLOW = "follow"


@dataclass
class _WorkItem:
    package: Package
    mode: str
    chain: tuple[str, ...]


class Installer:
    """包安装器：单线程、同步，失败立即抛出"""

    def __init__(
        self,
        filesystem: Filesystem,
        http: HttpClient,
        registry: RegistryClient,
        repository_factory: RepositoryFactory,
        archive_reader: ArchiveReader,
        *,
        install_dir: str,
        cache_dir: str,
        version_policy: VersionPolicy | None = None,
    ) -> None:
        self.filesystem = filesystem
        self.http = http
        self.registry = registry
        self.repository_factory = repository_factory
        self.install_dir = install_dir.rstrip("/")
        self.version_policy = version_policy or ExactVersionPolicy()
        self.extractor = ReleaseExtractor(filesystem, archive_reader, cache_dir)

    # ------------------------------------------------------------------
    # 公开操作
    # ------------------------------------------------------------------

    def install(self, package: Package) -> None:
        """安装包及其全部传递依赖"""
        self._walk(package, INSTALL)

    def update(self, package: Package) -> None:
        """把已安装的包更新到请求的版本，并递归处理依赖

        Raises:
            PackageNotInstalledError: 本地没有该包的清单
        """
        self._walk(package, UPDATE)

    def install_or_update(self, package: Package) -> None:
        """已安装则 update，否则 install"""
        self._walk(package, FOLLOW)

    def uninstall(self, package: Package) -> None:
        """删除 install_dir/<包名> 整个目录"""
        path = self.get_install_path(package)
        if not self.filesystem.has(path):
            raise PackageNotInstalledError(package.name)
        self.filesystem.delete_tree(path)
        logger.info("已卸载 %s: %s", package.name, path)

    def is_installed(self, package: Package) -> bool:
        return self._find_manifest_key(package.name) is not None

    def get_install_path(self, package: Package) -> str:
        return f"{self.install_dir}/{package.name}"

    def read_installed_manifest(self, name: str) -> Manifest:
        """读取本地已安装包的清单（bower.json 优先，其次 package.json）"""
        key = self._find_manifest_key(name)
        if key is None:
            raise PackageNotInstalledError(name)
        return Manifest.parse(self.filesystem.read(key), name)

    def list_installed(self) -> dict[str, str]:
        """{包名: 已安装版本}，清单无效的包版本记为空串"""
        installed: dict[str, str] = {}
        for name in self.filesystem.list_dir(self.install_dir):
            if self._find_manifest_key(name) is None:
                continue
            try:
                installed[name] = self.read_installed_manifest(name).version
            except InstallerError as e:
                logger.warning("跳过清单无效的包 %s: %s", name, e)
                installed[name] = ""
        return installed

    def package_info(self, package: Package) -> Manifest:
        """查询远程仓库默认分支上的清单（不下载归档）"""
        repo_url = self.registry.lookup(package.name)
        repository = self.repository_factory(repo_url, self.http)
        return Manifest.parse(repository.get_manifest(), package.name)

    # ------------------------------------------------------------------
    # 依赖遍历
    # ------------------------------------------------------------------

    def _walk(self, root: Package, mode: str) -> None:
        visited: set[tuple[str, str]] = set()
        stack = [_WorkItem(root, mode, (root.name,))]
        while stack:
            item = stack.pop()
            try:
                deps, next_mode = self._process(item, visited)
            except InstallerError as e:
                if not e.dependency_chain:
                    e.dependency_chain = item.chain
                logger.error(
                    "处理失败 [%s]: %s", " -> ".join(e.dependency_chain), e,
                    extra={"dependency_chain": e.dependency_chain},
                )
                raise
            # 逆序入栈，保证按清单顺序深度优先处理
            for dep in reversed(deps):
                stack.append(_WorkItem(dep, next_mode, item.chain + (dep.name,)))

    def _process(
        self, item: _WorkItem, visited: set[tuple[str, str]],
    ) -> tuple[list[Package], str]:
        mode = item.mode
        if mode == FOLLOW:
            mode = UPDATE if self.is_installed(item.package) else INSTALL
        if mode == INSTALL:
            return self._install_one(item.package, visited), INSTALL
        return self._update_one(item.package, visited), FOLLOW

    def _install_one(
        self, package: Package, visited: set[tuple[str, str]],
    ) -> list[Package]:
        logger.info("安装 %s", package)
        manifest, version = self._resolve(package)
        if not self._first_visit(package.name, version, visited):
            return []
        self._extract(package)
        logger.info("已安装 %s@%s", package.name, version)
        return self._dependencies(manifest)

    def _update_one(
        self, package: Package, visited: set[tuple[str, str]],
    ) -> list[Package]:
        installed = self.read_installed_manifest(package.name)
        if self.version_policy.is_satisfied(installed.version, package.version):
            logger.info("%s 已安装 %s，无需更新", package.name, installed.version)
            return []

        logger.info("更新 %s (当前 %s)", package, installed.version or "未知")
        manifest, version = self._resolve(package)
        # 解析出的版本已安装时归档用不到，所以在 get_release() 之前比较
        if self.version_policy.same_release(installed.version, version):
            logger.info("%s 远程最新版本 %s 已安装，无需更新", package.name, version)
            return []
        if not self._first_visit(package.name, version, visited):
            return []
        self._extract(package)
        logger.info("已更新 %s: %s -> %s", package.name, installed.version, version)
        return self._dependencies(manifest)

    # ------------------------------------------------------------------
    # 内部步骤
    # ------------------------------------------------------------------

    def _resolve(self, package: Package) -> tuple[Manifest, str]:
        """注册表查询 -> 仓库清单 -> 版本解析，返回 (远程清单, 解析出的版本)"""
        package.target_dir = self.install_dir
        repo_url = self.registry.lookup(package.name)
        repository = self.repository_factory(repo_url, self.http)
        manifest = Manifest.parse(repository.get_manifest(), package.name)
        version = repository.find_package(package.version)
        if version is None:
            raise VersionNotFoundError(package.name, package.version)
        package.repository = repository
        logger.debug("  %s 解析为 %s (%s)", package, version, repo_url)
        return manifest, version

    def _extract(self, package: Package) -> None:
        blob = package.repository.get_release()
        self.extractor.extract(package, blob)

    @staticmethod
    def _first_visit(name: str, version: str, visited: set[tuple[str, str]]) -> bool:
        key = (name, version)
        if key in visited:
            logger.info("%s@%s 本次已处理，跳过", name, version)
            return False
        visited.add(key)
        return True

    @staticmethod
    def _dependencies(manifest: Manifest) -> list[Package]:
        return [
            Package(name=name, version=constraint)
            for name, constraint in manifest.dependencies.items()
        ]

    def _find_manifest_key(self, name: str) -> str | None:
        for filename in MANIFEST_FILES:
            key = f"{self.install_dir}/{name}/{filename}"
            if self.filesystem.has(key):
                return key
        return None
