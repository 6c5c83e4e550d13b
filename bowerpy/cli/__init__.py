"""bowerpy 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
服务容器通过 click 上下文对象传递给各命令。
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from bowerpy import __version__
from bowerpy.core.config import DEFAULT_CONFIG_FILE, init_config
from bowerpy.core.exceptions import BowerpyError
from bowerpy.core.models import Manifest, Package
from bowerpy.services.container import ServiceContainer
from bowerpy.utils.logger import setup_logging

PROJECT_MANIFEST = "bower.json"


@contextmanager
def friendly_errors() -> Iterator[None]:
    """把业务异常转换为 click 错误输出（退出码 1）"""
    try:
        yield
    except BowerpyError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e


def parse_packages(specs: tuple[str, ...]) -> list[Package]:
    """把命令行参数解析为包；未指定时读取当前目录的 bower.json 依赖"""
    if specs:
        return [Package.from_spec(s) for s in specs]
    path = Path(PROJECT_MANIFEST)
    if not path.exists():
        raise click.UsageError(f"未指定包名，且当前目录没有 {PROJECT_MANIFEST}")
    manifest = Manifest.parse(path.read_bytes(), PROJECT_MANIFEST)
    return [Package(name, constraint) for name, constraint in manifest.dependencies.items()]


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path", default=DEFAULT_CONFIG_FILE,
    show_default=True, help="配置文件路径（YAML 或 .bowerrc）",
)
@click.option("--verbose", "-v", is_flag=True, help="输出 DEBUG 日志（覆盖 BOWERPY_LOG_LEVEL）")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool) -> None:
    """bowerpy - 前端依赖包安装器"""
    setup_logging(level="DEBUG" if verbose else None)
    if ctx.obj is None:
        with friendly_errors():
            ctx.obj = ServiceContainer(init_config(config_path))


# 注册各领域子命令
from bowerpy.cli.cmd_install import register as _reg_install  # noqa: E402
from bowerpy.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_install(main)
_reg_misc(main)
