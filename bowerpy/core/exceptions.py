"""统一异常体系

所有业务异常继承 BowerpyError。CLI 层据此输出友好提示，
安装器相关异常额外携带出错的包名和依赖链。
"""

from __future__ import annotations


class BowerpyError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(BowerpyError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(BowerpyError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class HttpError(BowerpyError):
    """HTTP 请求失败（传输错误或非 2xx 状态码）"""

    code = "HTTP_ERROR"

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        label = f"HTTP {status}" if status is not None else "传输错误"
        super().__init__(f"请求失败 {url} ({label}): {reason}")
        self.url = url
        self.reason = reason
        self.status = status


# =========================================================================
# 安装器异常：均与某个具体包相关
# =========================================================================


class InstallerError(BowerpyError):
    """安装/更新过程中的包级错误"""

    code = "INSTALLER_ERROR"

    def __init__(self, package_name: str, message: str) -> None:
        super().__init__(message)
        self.package_name = package_name
        # 由安装器在错误逃出依赖遍历时填充: root -> ... -> 出错的包
        self.dependency_chain: tuple[str, ...] = ()


class RegistryLookupError(InstallerError):
    """注册表不可达或返回非 2xx"""

    code = "REGISTRY_LOOKUP_ERROR"

    def __init__(self, package_name: str, cause: Exception | str) -> None:
        super().__init__(
            package_name, f"无法从注册表查询包 {package_name}: {cause}",
        )
        self.cause = cause


class MalformedRegistryResponseError(InstallerError):
    """注册表响应不是 JSON 对象或缺少 url"""

    code = "MALFORMED_REGISTRY_RESPONSE"

    def __init__(self, package_name: str, body: str = "") -> None:
        super().__init__(
            package_name,
            f"包 {package_name} 的注册表响应格式错误或缺少 \"url\"",
        )
        self.body = body


class InvalidManifestError(InstallerError):
    """bower.json / package.json 缺失或无法解析"""

    code = "INVALID_MANIFEST"

    def __init__(self, package_name: str, body: str = "", reason: str = "") -> None:
        detail = f" ({reason})" if reason else ""
        super().__init__(
            package_name,
            f"包 {package_name} 的清单无效{detail}: {body[:200]!r}",
        )
        self.body = body


class VersionNotFoundError(InstallerError):
    """没有满足约束的发布版本"""

    code = "VERSION_NOT_FOUND"

    def __init__(self, package_name: str, constraint: str) -> None:
        super().__init__(
            package_name, f"找不到包 {package_name} 满足 {constraint} 的版本",
        )
        self.constraint = constraint


class ArchiveOpenError(InstallerError):
    """下载的归档损坏或无法读取"""

    code = "ARCHIVE_OPEN_ERROR"

    def __init__(self, package_name: str, path: str, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(
            package_name, f"无法打开包 {package_name} 的归档 {path}{detail}",
        )
        self.path = path


class PackageNotInstalledError(InstallerError):
    """本地找不到包的清单文件"""

    code = "PACKAGE_NOT_INSTALLED"

    def __init__(self, package_name: str) -> None:
        super().__init__(
            package_name,
            f"包 {package_name} 未安装 (找不到 bower.json 或 package.json)",
        )


class RepositoryError(InstallerError):
    """源码仓库访问失败或调用顺序错误"""

    code = "REPOSITORY_ERROR"


class InstallPlacementError(InstallerError):
    """解压后的文件无法移动到安装目录"""

    code = "INSTALL_PLACEMENT_ERROR"

    def __init__(self, package_name: str, path: str, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(
            package_name, f"无法把包 {package_name} 的文件放到 {path}{detail}",
        )
        self.path = path
