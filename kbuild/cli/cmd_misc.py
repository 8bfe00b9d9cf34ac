"""CLI：查询类命令：targets, platforms, setup, version-flags"""

from __future__ import annotations

import click

from kbuild.cli import _guard, _svc
from kbuild.core.models import TargetCategory


def register(group: click.Group) -> None:
    group.add_command(targets)
    group.add_command(platforms)
    group.add_command(setup)
    group.add_command(version_flags)


@click.command()
@click.option("--category", default=None,
              type=click.Choice([c.value for c in TargetCategory]), help="按类别过滤")
def targets(category: str | None) -> None:
    """列出构建目标（* 表示静态链接）"""
    registry = _svc().registry
    cat = TargetCategory(category) if category else None
    for t in registry.targets(cat):
        mark = "*" if registry.is_statically_linked(t) else " "
        click.echo(f"  {mark} {t.name:25s} [{t.category.value:6s}] {t.path}")


@click.command()
def platforms() -> None:
    """显示宿主平台、当前平台和客户端平台矩阵"""
    svc = _svc()
    host, current = _guard(svc.platforms)
    click.echo(f"宿主平台: {host}")
    click.echo(f"当前平台: {current}")
    click.echo("客户端平台:")
    for p in svc.registry.client_platforms:
        click.echo(f"  {p}")


@click.command()
def setup() -> None:
    """准备 GOPATH 工作区并校验工具链，输出 GOPATH"""
    ctx = _guard(_svc().prepare)
    click.echo(f"GOPATH={ctx.gopath}")


@click.command(name="version-flags")
def version_flags() -> None:
    """输出版本戳 -ldflags"""
    click.echo(_svc().version_ldflags())
