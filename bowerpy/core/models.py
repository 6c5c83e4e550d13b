"""领域数据模型

数据类:
- Package: 待安装的包（名称 + 版本约束 + 安装目录 + 来源仓库）
- Manifest: bower.json / package.json 解析结果
- ArchiveEntry: 归档条目
- HttpResponse: HTTP 响应
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bowerpy.core.exceptions import InvalidManifestError, ValidationError

if TYPE_CHECKING:
    from bowerpy.core.protocols import PackageRepository

# 本地清单文件名，按优先级排列
MANIFEST_FILES = ("bower.json", "package.json")

DEFAULT_CONSTRAINT = "*"


@dataclass
class Package:
    """待安装/更新的包"""

    name: str
    version: str = DEFAULT_CONSTRAINT  # 版本约束: 精确版本 / 范围 / "*"
    target_dir: str = ""
    repository: PackageRepository | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.name = self.name.strip()
        if not self.name:
            raise ValidationError("包名不能为空")
        self.version = (self.version or DEFAULT_CONSTRAINT).strip()

    @classmethod
    def from_spec(cls, spec: str) -> Package:
        """解析 "name" 或 "name#constraint" 形式的包描述"""
        name, _, version = spec.partition("#")
        return cls(name=name, version=version or DEFAULT_CONSTRAINT)

    def __str__(self) -> str:
        return f"{self.name}#{self.version}"


@dataclass
class Manifest:
    """包清单 (bower.json / package.json)"""

    name: str = ""
    version: str = ""
    homepage: str = ""
    dependencies: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def parse(cls, text: str | bytes, package_name: str) -> Manifest:
        """解析清单文本，非 JSON 对象时抛 InvalidManifestError"""
        if isinstance(text, bytes):
            text = text.decode("utf-8", errors="replace")
        try:
            data = json.loads(text)
        except ValueError as e:
            raise InvalidManifestError(package_name, text, reason=str(e)) from e
        if not isinstance(data, dict):
            raise InvalidManifestError(package_name, text, reason="不是 JSON 对象")

        deps = data.get("dependencies") or {}
        if not isinstance(deps, dict):
            raise InvalidManifestError(
                package_name, text, reason="dependencies 不是对象",
            )
        return cls(
            name=str(data.get("name", "")),
            version=str(data.get("version", "")),
            homepage=str(data.get("homepage", "")),
            dependencies={str(k): str(v) for k, v in deps.items()},
            raw=data,
        )


@dataclass(frozen=True)
class ArchiveEntry:
    """归档条目，size == 0 表示目录"""

    path: str
    size: int

    @property
    def is_dir(self) -> bool:
        return self.size == 0


@dataclass
class HttpResponse:
    """HTTP 响应（与 urllib 解耦）"""

    status: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """解析响应体为 JSON，失败抛 ValueError"""
        return json.loads(self.text)
