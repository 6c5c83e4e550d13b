"""服务容器 — 统一依赖注入

安装器及其协作者（HTTP 客户端、文件系统、归档读取器、注册表、版本策略）
都通过容器获取，同一容器内的实例共享。CLI 通过 get_container() 获取，
测试可以构造独立容器或直接替换 _instances 中的实例。

依赖关系图（→ 表示依赖）:
  installer → filesystem, http, registry, archive_reader, version_policy
  registry  → http

用法:
    container = ServiceContainer()
    container.installer.install(Package("jquery"))

    # 显式注入配置
    cfg = Config.from_file(".bowerrc")
    container = ServiceContainer(config=cfg)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bowerpy.core.config import Config
    from bowerpy.core.installer import Installer
    from bowerpy.core.protocols import VersionPolicy
    from bowerpy.core.registry import RegistryClient
    from bowerpy.utils.archive import ZipArchiveReader
    from bowerpy.utils.filesystem import LocalFilesystem
    from bowerpy.utils.net import UrllibHttpClient

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(self, config: Config | None = None) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from bowerpy.core.config import get_config
            config = get_config()
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    @property
    def http(self) -> UrllibHttpClient:
        if "http" not in self._instances:
            from bowerpy.utils.net import UrllibHttpClient
            self._instances["http"] = UrllibHttpClient(
                timeout=self._config.http_timeout,
                user_agent=self._config.user_agent,
            )
        return self._instances["http"]  # type: ignore[return-value]

    @property
    def filesystem(self) -> LocalFilesystem:
        if "filesystem" not in self._instances:
            from bowerpy.utils.filesystem import LocalFilesystem
            self._instances["filesystem"] = LocalFilesystem(self._config.storage_root)
        return self._instances["filesystem"]  # type: ignore[return-value]

    @property
    def archive_reader(self) -> ZipArchiveReader:
        if "archive_reader" not in self._instances:
            from bowerpy.utils.archive import ZipArchiveReader
            self._instances["archive_reader"] = ZipArchiveReader()
        return self._instances["archive_reader"]  # type: ignore[return-value]

    @property
    def registry(self) -> RegistryClient:
        if "registry" not in self._instances:
            from bowerpy.core.registry import RegistryClient
            self._instances["registry"] = RegistryClient(
                self.http, self._config.base_packages_url,
            )
        return self._instances["registry"]  # type: ignore[return-value]

    @property
    def version_policy(self) -> VersionPolicy:
        if "version_policy" not in self._instances:
            from bowerpy.core.versioning import get_policy
            self._instances["version_policy"] = get_policy(self._config.version_policy)
        return self._instances["version_policy"]  # type: ignore[return-value]

    @property
    def installer(self) -> Installer:
        if "installer" not in self._instances:
            from bowerpy.core.installer import Installer
            from bowerpy.repository.github import GithubRepository
            self._instances["installer"] = Installer(
                self.filesystem,
                self.http,
                self.registry,
                GithubRepository,
                self.archive_reader,
                install_dir=self._config.install_path(),
                cache_dir=self._config.cache_path(),
                version_policy=self.version_policy,
            )
        return self._instances["installer"]  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（CLI 切换配置 / 测试用）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
