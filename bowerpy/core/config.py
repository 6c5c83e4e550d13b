"""集中配置管理

提供统一的配置入口：安装目录、缓存目录、注册表地址等。
支持从 YAML / .bowerrc 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from bowerpy import __version__
from bowerpy.core.exceptions import ConfigError
from bowerpy.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".bowerrc"

# bower 原生 .bowerrc 键名 -> Config 字段
_ALIASES = {
    "directory": "install_dir",
    "cacheDir": "cache_dir",
}


@dataclass
class Config:
    """安装器全局配置"""

    # 目录
    install_dir: str = "bower_components"
    cache_dir: str = "~/.cache/bowerpy"
    storage_root: str = "/"

    # 注册表
    base_packages_url: str = "https://registry.bower.io/packages/"

    # 网络
    http_timeout: int = 30
    user_agent: str = f"bowerpy/{__version__}"

    # 已安装版本比较策略: exact / semver
    version_policy: str = "exact"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.base_packages_url:
            raise ConfigError("base_packages_url 不能为空")
        if not self.base_packages_url.endswith("/"):
            self.base_packages_url += "/"
        if self.http_timeout <= 0:
            raise ConfigError(f"http_timeout 必须为正数: {self.http_timeout}")

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigError(f"无法解析配置文件 {path}: {e}") from e
        if not data:
            return cls()
        data = dict(data)
        for alias, name in _ALIASES.items():
            if alias in data:
                data.setdefault(name, data.pop(alias))
        # bower 的 registry 是站点根地址，包查询接口在 /packages/ 下
        registry = data.pop("registry", None)
        if isinstance(registry, str) and registry:
            data.setdefault("base_packages_url", registry.rstrip("/") + "/packages/")

        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件 {path} 内容无效: {e}") from e
        cfg.extra = extra
        return cfg

    def install_path(self) -> str:
        """安装目录的绝对路径"""
        return str(Path(self.install_dir).expanduser().resolve())

    def cache_path(self) -> str:
        """缓存目录的绝对路径"""
        return str(Path(self.cache_dir).expanduser().resolve())

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_FILE) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
