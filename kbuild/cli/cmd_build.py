"""CLI：构建与产物放置命令"""

from __future__ import annotations

import click

from kbuild.cli import _guard, _svc
from kbuild.core.models import PlacementMode, parse_platforms


def register(group: click.Group) -> None:
    group.add_command(build)
    group.add_command(place)


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.option("--use-go-build", is_flag=True, help="使用 go build -o 代替 go install")
@click.option("--platform", "platforms", multiple=True,
              help="目标平台 os/arch（可多次指定，默认读取 KUBE_BUILD_PLATFORMS）")
@click.option("--place/--no-place", default=True, help="构建后放置产物")
def build(
    args: tuple[str, ...], use_go_build: bool,
    platforms: tuple[str, ...], place: bool,
) -> None:
    """构建目标，ARGS 可混合目标与 - 开头的 go 参数（不指定目标则构建全部）"""
    svc = _svc()
    mode = PlacementMode.BUILD if use_go_build else PlacementMode.INSTALL
    requested = _guard(lambda: parse_platforms(platforms))
    report = _guard(lambda: svc.build(args, platforms=requested, mode=mode, place=place))
    for o in report.outcomes:
        mark = "OK" if o.success else "FAIL"
        click.echo(f"  [{mark:4s}] {o.platform!s:15s} {o.target.path}")
    s = report.summary()
    click.echo(f"总计: {s['total']}  成功: {s['passed']}  失败: {s['failed']}")
    if not report.success:
        raise SystemExit(1)


@click.command()
@click.option("--bindir", default="", help="产物输出目录（默认 KUBE_OUTPUT_BINPATH）")
def place(bindir: str) -> None:
    """把已构建的产物放置到 <bindir>/<os>/<arch>"""
    svc = _svc()
    placed = _guard(lambda: svc.place(bindir or None))
    if not placed:
        click.echo("没有可放置的产物。")
        return
    for p in placed:
        click.echo(f"  {p}")
