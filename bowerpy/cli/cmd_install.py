"""CLI - 安装与更新命令"""

from __future__ import annotations

import click

from bowerpy.cli import friendly_errors, parse_packages
from bowerpy.services.container import ServiceContainer


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(update)


@click.command()
@click.argument("packages", nargs=-1)
@click.pass_obj
def install(container: ServiceContainer, packages: tuple[str, ...]) -> None:
    """安装包及其依赖（PACKAGE 或 PACKAGE#VERSION；不指定则安装 bower.json 的依赖）"""
    with friendly_errors():
        installer = container.installer
        for package in parse_packages(packages):
            installer.install(package)
            click.echo(f"已安装: {package} -> {installer.get_install_path(package)}")


@click.command()
@click.argument("packages", nargs=-1)
@click.pass_obj
def update(container: ServiceContainer, packages: tuple[str, ...]) -> None:
    """更新已安装的包（不指定则按 bower.json 更新，缺失的包直接安装）"""
    with friendly_errors():
        installer = container.installer
        if packages:
            for package in parse_packages(packages):
                installer.update(package)
                click.echo(f"已更新: {package}")
        else:
            for package in parse_packages(packages):
                installer.install_or_update(package)
                click.echo(f"已同步: {package}")
