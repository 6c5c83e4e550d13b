"""CLI - 卸载、查询、搜索、列表、配置命令"""

from __future__ import annotations

import click
import yaml

from bowerpy.cli import friendly_errors
from bowerpy.core.models import Package
from bowerpy.services.container import ServiceContainer


def register(group: click.Group) -> None:
    group.add_command(uninstall)
    group.add_command(info)
    group.add_command(search)
    group.add_command(list_installed)
    group.add_command(show_config)


@click.command()
@click.argument("packages", nargs=-1, required=True)
@click.pass_obj
def uninstall(container: ServiceContainer, packages: tuple[str, ...]) -> None:
    """卸载包（删除安装目录下的包目录）"""
    with friendly_errors():
        for spec in packages:
            package = Package.from_spec(spec)
            container.installer.uninstall(package)
            click.echo(f"已卸载: {package.name}")


@click.command()
@click.argument("package")
@click.pass_obj
def info(container: ServiceContainer, package: str) -> None:
    """查看包的远程清单信息"""
    with friendly_errors():
        manifest = container.installer.package_info(Package.from_spec(package))
    click.echo(f"名称:   {manifest.name}")
    click.echo(f"版本:   {manifest.version or '未知'}")
    if manifest.homepage:
        click.echo(f"主页:   {manifest.homepage}")
    if manifest.dependencies:
        click.echo("依赖:")
        for name, constraint in sorted(manifest.dependencies.items()):
            click.echo(f"  {name}: {constraint}")


@click.command()
@click.argument("query")
@click.pass_obj
def search(container: ServiceContainer, query: str) -> None:
    """在注册表中按名称搜索包"""
    with friendly_errors():
        results = container.registry.search(query)
    if not results:
        click.echo(f"没有匹配 '{query}' 的包。")
        return
    for item in results:
        click.echo(f"  {item['name']:30s} {item.get('url', '')}")


@click.command(name="list")
@click.pass_obj
def list_installed(container: ServiceContainer) -> None:
    """列出已安装的包及版本"""
    with friendly_errors():
        installed = container.installer.list_installed()
    if not installed:
        click.echo("没有已安装的包。")
        return
    for name, version in installed.items():
        click.echo(f"  {name:30s} {version or '(清单无效)'}")


@click.command(name="config")
@click.pass_obj
def show_config(container: ServiceContainer) -> None:
    """以 YAML 格式显示当前生效的配置"""
    data = container.config.to_dict()
    data["install_path"] = container.config.install_path()
    data["cache_path"] = container.config.cache_path()
    click.echo(yaml.safe_dump(data, allow_unicode=True, sort_keys=False), nl=False)
