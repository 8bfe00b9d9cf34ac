"""kbuild 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import TypeVar

import click

from kbuild import __version__
from kbuild.core.config import DEFAULT_CONFIG_FILE, init_config
from kbuild.core.exceptions import KBuildError
from kbuild.services.build_service import BuildService
from kbuild.utils.logger import setup_logging

T = TypeVar("T")


def _guard(fn: Callable[[], T]) -> T:
    """执行服务调用，业务异常转为错误提示和退出码"""
    try:
        return fn()
    except KBuildError as e:
        click.echo(f"!!! {e}", err=True)
        raise SystemExit(e.exit_code) from e


def _svc() -> BuildService:
    """基于当前全局配置构造构建服务"""
    return _guard(BuildService)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="配置文件路径")
def main(config: str) -> None:
    """kbuild - Go 单仓多目标多平台构建编排"""
    setup_logging(
        level=os.getenv("KBUILD_LOG_LEVEL", "INFO"),
        json_output=os.getenv("KBUILD_LOG_JSON", "") == "1",
    )
    _guard(lambda: init_config(config))


# 注册各领域子命令
from kbuild.cli.cmd_build import register as _reg_build  # noqa: E402
from kbuild.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_build(main)
_reg_misc(main)
