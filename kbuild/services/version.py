"""版本戳

从 git 读取版本、提交、工作区状态，连同构建时间生成 -ldflags，
一次构建调用只计算一次，所有目标/平台共用。
KUBE_GIT_COMMIT / KUBE_GIT_VERSION / KUBE_GIT_TREE_STATE 可覆盖 git 查询结果。
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from kbuild.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionInfo:
    """嵌入二进制的构建元数据"""

    git_version: str = ""
    git_commit: str = ""
    git_tree_state: str = ""
    build_date: str = ""

    def ldflags(self, version_package: str, legacy: bool = False) -> str:
        """-X 参数串；legacy 为 go1.5 之前链接器的 -X name value 写法"""
        sep = " " if legacy else "="
        flags = []
        for var, value in (
            ("buildDate", self.build_date),
            ("gitCommit", self.git_commit),
            ("gitTreeState", self.git_tree_state),
            ("gitVersion", self.git_version),
        ):
            if value:
                flags.append(f"-X {version_package}.{var}{sep}{value}")
        return " ".join(flags)


class VersionReader:
    """从源码树的 git 仓库读取版本信息"""

    def __init__(
        self,
        root: Path,
        executor: CommandExecutor | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.root = root
        self._executor = executor or get_executor()
        self._environ = os.environ if environ is None else environ

    def _git(self, *args: str) -> str | None:
        r = self._executor.execute(["git", *args], cwd=str(self.root))
        if not r.success:
            logger.debug("git %s 失败: %s", " ".join(args), r.stderr.strip())
            return None
        return r.stdout.strip()

    def read(self, now: datetime | None = None) -> VersionInfo:
        build_date = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")

        commit = self._environ.get("KUBE_GIT_COMMIT", "")
        tree_state = self._environ.get("KUBE_GIT_TREE_STATE", "")
        version = self._environ.get("KUBE_GIT_VERSION", "")

        if not commit:
            commit = self._git("rev-parse", "HEAD^{commit}") or ""
            if not commit:
                logger.warning("无法读取 git 提交信息，版本戳将不含 git 字段: %s", self.root)
                return VersionInfo(build_date=build_date)

        if not tree_state:
            status = self._git("status", "--porcelain")
            tree_state = "clean" if status == "" else "dirty"

        if not version:
            version = self._git("describe", "--tags", "--abbrev=14", f"{commit}^{{commit}}") or ""
            if version and tree_state == "dirty":
                version += "-dirty"

        return VersionInfo(
            git_version=version,
            git_commit=commit,
            git_tree_state=tree_state,
            build_date=build_date,
        )
