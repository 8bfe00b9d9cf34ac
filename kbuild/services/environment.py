"""构建环境准备

职责:
- 在输出目录下创建 GOPATH 工作区，并以符号链接指回真实源码树
- 校验 go 工具链存在且版本满足要求（CI 环境跳过版本检查）
- 组装 GOPATH，清除 GOBIN，使产物落到可预测的位置

每次调用都会基于进程环境的新副本重新准备，互不影响。
同一输出目录不支持并发准备（无内部加锁）。
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from kbuild.core.config import Config
from kbuild.core.exceptions import (
    FilesystemError,
    ToolchainNotFoundError,
    ToolchainVersionTooOldError,
)
from kbuild.services.toolchain import GoToolchain, ToolchainEnv
from kbuild.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

GO_INSTALL_DOC = "http://golang.org/doc/install"

_VERSION_RE = re.compile(r"^go(\d+(?:\.\d+)*)")


def parse_go_version(version: str) -> tuple[int, ...] | None:
    """go1.4.2 -> (1, 4, 2)；无法识别时返回 None"""
    m = _VERSION_RE.match(version.strip())
    if m is None:
        return None
    return tuple(int(p) for p in m.group(1).split("."))


def is_devel_version(version: str) -> bool:
    return version.startswith(("devel", "+"))


def version_at_least(detected: str, minimum: str) -> bool:
    """按数字逐段比较版本（go1.10 > go1.2）"""
    have = parse_go_version(detected)
    need = parse_go_version(minimum)
    if have is None or need is None:
        return False
    width = max(len(have), len(need))
    return have + (0,) * (width - len(have)) >= need + (0,) * (width - len(need))


# go1.5 起链接器使用 -X name=value，之前只接受 -X name value
LDFLAGS_ASSIGN_VERSION = "go1.5"


def uses_legacy_ldflags(version: str) -> bool:
    if is_devel_version(version):
        return False
    return not version_at_least(version, LDFLAGS_ASSIGN_VERSION)


@dataclass
class BuildContext:
    """一次准备好的构建环境"""

    toolchain: GoToolchain
    gopath_root: Path
    package_dir: Path
    gopath: str

    @property
    def bin_dir(self) -> Path:
        """go install 的原生产物目录"""
        return self.gopath_root / "bin"


class EnvironmentSetup:
    """构建环境准备器"""

    def __init__(
        self,
        config: Config,
        executor: CommandExecutor | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config
        self.executor = executor
        self.environ = environ

    @property
    def package_dir(self) -> Path:
        return self.config.gopath_root / "src" / self.config.go_package

    def create_gopath_tree(self) -> Path:
        """创建 <output>/go/src/<package> -> 源码根目录 的符号链接"""
        pkg_dir = self.package_dir
        try:
            pkg_dir.parent.mkdir(parents=True, exist_ok=True)
            if pkg_dir.is_symlink() or pkg_dir.is_file():
                pkg_dir.unlink()
            elif pkg_dir.is_dir():
                logger.warning("移除已存在的工作区目录: %s", pkg_dir)
                shutil.rmtree(pkg_dir)
            pkg_dir.symlink_to(self.config.root_path, target_is_directory=True)
        except OSError as e:
            raise FilesystemError(f"创建 GOPATH 工作区失败 {pkg_dir}: {e}") from e
        logger.debug("GOPATH 工作区: %s -> %s", pkg_dir, self.config.root_path)
        return pkg_dir

    def check_toolchain(self, toolchain: GoToolchain) -> str:
        """确认 go 在 PATH 中，返回其路径"""
        path = toolchain.which()
        if path is None:
            raise ToolchainNotFoundError(
                f"PATH 中找不到 '{toolchain.binary}'，请修复后重试。"
                f"安装说明见 {GO_INSTALL_DOC}"
            )
        return path

    def check_version(self, toolchain: GoToolchain) -> None:
        """校验 go 版本；CI 环境使用预先验证过的工具链，直接跳过"""
        if self.config.ci:
            logger.debug("CI 环境，跳过 go 版本检查")
            return
        detected = toolchain.version()
        if is_devel_version(detected):
            logger.info("开发版 go 工具链: %s", detected)
            return
        if not version_at_least(detected, self.config.min_go_version):
            raise ToolchainVersionTooOldError(detected, self.config.min_go_version)

    def compose_gopath(self) -> str:
        """工作区 [+ KUBE_EXTRA_GOPATH] [+ Godeps/_workspace]"""
        parts = [str(self.config.gopath_root)]
        if self.config.extra_gopath:
            parts.append(self.config.extra_gopath)
        if not self.config.no_godeps:
            parts.append(str(self.config.root_path / self.config.godeps_workspace))
        return ":".join(parts)

    def setup_environment(self) -> BuildContext:
        """准备 GOPATH 工作区并返回绑定该环境的工具链"""
        package_dir = self.create_gopath_tree()

        env = ToolchainEnv(self.environ)
        toolchain = GoToolchain(env, self.executor, binary=self.config.go_binary)
        self.check_toolchain(toolchain)
        self.check_version(toolchain)

        gopath = self.compose_gopath()
        env.set("GOPATH", gopath)
        env.unset("GOBIN")
        logger.debug("GOPATH=%s", gopath)
        return BuildContext(
            toolchain=toolchain,
            gopath_root=self.config.gopath_root,
            package_dir=package_dir,
            gopath=gopath,
        )
