"""构建执行器

职责:
- 展开 平台 × 目标 矩阵并逐个调用 go build / go install
- 按目标选择静态/动态链接方式，附加版本戳 -ldflags
- 单元失败只记录不中断，最终汇总为整体成败

静态链接目标使用 CGO_ENABLED=0 和 -installsuffix cgo，
避免与同名包的动态链接产物在包缓存中互相覆盖。
"""

from __future__ import annotations

import getpass
import logging
import os
import time
from collections.abc import Sequence
from pathlib import Path

from kbuild.core.config import Config
from kbuild.core.exceptions import (
    CompileError,
    ExecutionError,
    StdlibPrebuiltMissingError,
)
from kbuild.core.models import (
    Binary,
    BuildOutcome,
    BuildReport,
    Platform,
    PlacementMode,
    Target,
)
from kbuild.core.targets import TargetRegistry
from kbuild.services.environment import BuildContext, EnvironmentSetup, uses_legacy_ldflags
from kbuild.services.platform import PlatformResolver
from kbuild.services.toolchain import GoToolchain
from kbuild.services.version import VersionReader

logger = logging.getLogger(__name__)

STATIC_INSTALL_SUFFIX = "cgo"


def split_args(args: Sequence[str]) -> tuple[list[str], list[str]]:
    """拆分命令行参数：以 - 开头的视为 go 参数，其余为构建目标"""
    targets: list[str] = []
    flags: list[str] = []
    for arg in args:
        (flags if arg.startswith("-") else targets).append(arg)
    return targets, flags


def _pkg_writable(pkg_root: Path) -> bool:
    return os.access(pkg_root, os.W_OK)


def exit_if_stdlib_not_installed(toolchain: GoToolchain, platform: Platform) -> None:
    """静态链接前确认 cgo 版标准库已预编译

    标准库缺失且 GOROOT/pkg 可写时交给 go 自行补建；不可写时拒绝修改
    共享工具链，抛出带修复指引的 StdlibPrebuiltMissingError。
    """
    goroot = Path(toolchain.env_value("GOROOT"))
    pkg_root = goroot / "pkg"
    if (pkg_root / f"{platform.dirname}_{STATIC_INSTALL_SUFFIX}").exists():
        return
    if _pkg_writable(pkg_root):
        return
    user = getpass.getuser()
    raise StdlibPrebuiltMissingError(
        f"未找到 {platform} 的 cgo 标准库包，且 {pkg_root} 对 {user} 不可写，无法重建。"
        f"请让 {pkg_root} 对 {user} 可写以一次性安装标准库，或执行 "
        f"'CGO_ENABLED=0 GOOS={platform.os} GOARCH={platform.arch} "
        f"go install -a -installsuffix {STATIC_INSTALL_SUFFIX} std' 重建标准库"
    )


class BuildExecutor:
    """平台 × 目标 矩阵构建器"""

    def __init__(
        self,
        config: Config,
        setup: EnvironmentSetup,
        registry: TargetRegistry,
        version_reader: VersionReader | None = None,
    ) -> None:
        self.config = config
        self._setup = setup
        self._registry = registry
        self._version_reader = version_reader or VersionReader(
            config.root_path, setup.executor, setup.environ,
        )

    def version_ldflags(self, toolchain: GoToolchain) -> str:
        """版本戳 -ldflags，按工具链版本选择 -X 写法"""
        legacy = uses_legacy_ldflags(toolchain.version())
        return self._version_reader.read().ldflags(self.config.version_package, legacy)

    def go_command(
        self,
        target: Target,
        output: Path,
        goflags: Sequence[str],
        ldflags: str,
        mode: PlacementMode,
    ) -> tuple[list[str], dict[str, str]]:
        """组装单个目标的 go 参数与附加环境变量"""
        extra_env: dict[str, str] = {}
        args = ["install"] if mode is PlacementMode.INSTALL else ["build"]
        if target.static:
            extra_env["CGO_ENABLED"] = "0"
            args += ["-installsuffix", STATIC_INSTALL_SUFFIX]
        if mode is PlacementMode.BUILD:
            args += ["-o", str(output)]
        args += list(goflags)
        if ldflags:
            args += ["-ldflags", ldflags]
        args.append(target.package(self.config.go_package))
        return args, extra_env

    def build_binaries(
        self,
        targets: Sequence[Target] = (),
        platforms: Sequence[Platform] = (),
        extra_flags: Sequence[str] = (),
        mode: PlacementMode | str = PlacementMode.INSTALL,
    ) -> BuildReport:
        """构建矩阵，返回逐单元结果

        每次调用都重新准备环境，环境错误直接抛出，不尝试任何构建。
        """
        mode = PlacementMode(mode)
        ctx = self._setup.setup_environment()
        resolver = PlatformResolver(ctx.toolchain)

        targets = list(targets) or list(self._registry.all_targets)
        platforms = list(platforms) or [resolver.current_platform()]
        host = resolver.host_platform()

        ldflags = self.version_ldflags(ctx.toolchain)
        goflags = self.config.goflag_list() + list(extra_flags)

        report = BuildReport(platforms=platforms, targets=targets, version_ldflags=ldflags)
        stdlib_checks: dict[Platform, StdlibPrebuiltMissingError | None] = {}
        for platform in platforms:
            with resolver.platform_env(platform):
                logger.info(
                    "构建 %s 平台目标: %s", platform, " ".join(t.path for t in targets),
                )
                for target in targets:
                    report.outcomes.append(self._build_one(
                        ctx, target, Binary(target, platform, host),
                        goflags, ldflags, mode, stdlib_checks,
                    ))

        summary = report.summary()
        if report.success:
            logger.info("构建完成: %d 个单元全部成功", summary["total"])
        else:
            logger.error(
                "构建失败: %d/%d 个单元失败: %s", summary["failed"], summary["total"],
                ", ".join(f"{o.target.name}@{o.platform}" for o in report.failed),
            )
        return report

    def _ensure_stdlib(
        self, toolchain: GoToolchain, platform: Platform,
        checks: dict[Platform, StdlibPrebuiltMissingError | None],
    ) -> None:
        """每个平台只检查一次"""
        if platform not in checks:
            try:
                exit_if_stdlib_not_installed(toolchain, platform)
                checks[platform] = None
            except StdlibPrebuiltMissingError as e:
                logger.error("%s", e, extra={"platform": platform})
                checks[platform] = e
        error = checks[platform]
        if error is not None:
            raise error

    def _build_one(
        self,
        ctx: BuildContext,
        target: Target,
        binary: Binary,
        goflags: Sequence[str],
        ldflags: str,
        mode: PlacementMode,
        stdlib_checks: dict[Platform, StdlibPrebuiltMissingError | None],
    ) -> BuildOutcome:
        output = binary.output_path(ctx.bin_dir)
        args, extra_env = self.go_command(target, output, goflags, ldflags, mode)
        start = time.monotonic()
        try:
            if target.static:
                self._ensure_stdlib(ctx.toolchain, binary.platform, stdlib_checks)
            if mode is PlacementMode.BUILD:
                output.parent.mkdir(parents=True, exist_ok=True)
            r = ctx.toolchain.go(*args, extra_env=extra_env, cwd=str(ctx.package_dir))
            if not r.success:
                raise CompileError(
                    f"go {args[0]} {target.path} 失败 (rc={r.returncode}): {r.stderr[:500]}"
                )
        except (CompileError, StdlibPrebuiltMissingError, ExecutionError, OSError) as e:
            duration = time.monotonic() - start
            if not isinstance(e, StdlibPrebuiltMissingError):
                logger.error(
                    "构建失败 %s (%s): %s", target.path, binary.platform, e,
                    extra={"target": target.path, "platform": binary.platform},
                )
            self._discard(output)
            return BuildOutcome(
                target=target, platform=binary.platform, status="failed",
                message=str(e), duration=duration,
            )
        duration = time.monotonic() - start
        logger.debug("  已构建: %s -> %s (%.1fs)", target.path, output, duration)
        return BuildOutcome(
            target=target, platform=binary.platform, status="success",
            output_path=str(output), duration=duration,
        )

    @staticmethod
    def _discard(output: Path) -> None:
        """失败单元不得留下产物（包括上次构建的旧文件）"""
        try:
            output.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("无法删除失败单元的旧产物 %s: %s", output, e)
