"""构建服务：环境准备 / 矩阵构建 / 产物放置

CLI 通过本服务驱动完整流程:
  setup_environment → 平台解析 → build_binaries → place_binaries
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from kbuild.core.config import Config, get_config
from kbuild.core.models import BuildReport, Platform, PlacementMode
from kbuild.services.builder import BuildExecutor, split_args
from kbuild.services.environment import BuildContext, EnvironmentSetup
from kbuild.services.placer import ArtifactPlacer
from kbuild.services.platform import PlatformResolver
from kbuild.services.version import VersionReader
from kbuild.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class BuildService:
    """构建流程编排"""

    def __init__(
        self,
        config: Config | None = None,
        executor: CommandExecutor | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config or get_config()
        self.registry = self.config.registry()
        self.setup = EnvironmentSetup(self.config, executor, environ)
        self.version_reader = VersionReader(self.config.root_path, executor, environ)
        self.executor = BuildExecutor(
            self.config, self.setup, self.registry, self.version_reader,
        )

    def prepare(self) -> BuildContext:
        """只准备构建环境"""
        return self.setup.setup_environment()

    def platforms(self) -> tuple[Platform, Platform]:
        """返回 (宿主平台, 当前平台)"""
        resolver = PlatformResolver(self.prepare().toolchain)
        return resolver.host_platform(), resolver.current_platform()

    def version_ldflags(self) -> str:
        return self.executor.version_ldflags(self.prepare().toolchain)

    def build(
        self,
        args: Sequence[str] = (),
        *,
        platforms: Sequence[Platform] = (),
        mode: PlacementMode | str = PlacementMode.INSTALL,
        place: bool = True,
    ) -> BuildReport:
        """构建命令行给出的目标（混合目标与 go 参数），可选放置产物"""
        names, flags = split_args(args)
        targets = self.registry.resolve(names)
        requested = list(platforms) or self.config.platforms()
        report = self.executor.build_binaries(targets, requested, flags, mode)
        if place:
            self.place()
        return report

    def place(self, output_bindir: str | Path | None = None) -> list[Path]:
        """把工具链原生目录中的产物放置到输出目录"""
        ctx = self.prepare()
        host = PlatformResolver(ctx.toolchain).host_platform()
        placer = ArtifactPlacer(ctx.bin_dir, host, self.registry.client_platforms)
        dest = Path(output_bindir) if output_bindir else self.config.bindir_path
        return placer.place_binaries(dest)
