"""go 工具链适配

职责:
- 工具链进程环境（GOPATH / GOOS / GOARCH 等）的显式持有与作用域修改
- go 子命令调用（env / version / build / install）

环境变量不写入 os.environ，而是随 ToolchainEnv 对象传递给每次子进程调用。
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from kbuild.core.exceptions import ExecutionError
from kbuild.core.models import Platform
from kbuild.utils.shell import CommandExecutor, CommandResult, format_cmd, get_executor

logger = logging.getLogger(__name__)

PLATFORM_VARS = ("GOOS", "GOARCH")


class ToolchainEnv:
    """工具链进程环境快照

    构造时复制一份基础环境，之后的修改只作用于本对象。
    """

    def __init__(self, base: Mapping[str, str] | None = None) -> None:
        self._vars: dict[str, str] = dict(os.environ if base is None else base)

    def get(self, key: str, default: str = "") -> str:
        return self._vars.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._vars[key] = value

    def unset(self, key: str) -> None:
        self._vars.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def as_dict(self) -> dict[str, str]:
        return dict(self._vars)

    # ---- 平台变量 ----

    def apply_platform_env(self, platform: Platform) -> dict[str, str | None]:
        """设置 GOOS/GOARCH，返回设置前的值供 clear_platform_env 恢复"""
        saved = {k: self._vars.get(k) for k in PLATFORM_VARS}
        self._vars["GOOS"] = platform.os
        self._vars["GOARCH"] = platform.arch
        return saved

    def clear_platform_env(self, saved: Mapping[str, str | None] | None = None) -> None:
        """撤销平台变量；未提供 saved 时无条件删除 GOOS/GOARCH"""
        for key in PLATFORM_VARS:
            previous = saved.get(key) if saved else None
            if previous is None:
                self._vars.pop(key, None)
            else:
                self._vars[key] = previous

    @contextmanager
    def platform_env(self, platform: Platform) -> Iterator[ToolchainEnv]:
        """作用域内交叉编译到 platform，退出时（包括异常）恢复原值"""
        saved = self.apply_platform_env(platform)
        try:
            yield self
        finally:
            self.clear_platform_env(saved)


class GoToolchain:
    """go 命令封装"""

    def __init__(
        self,
        env: ToolchainEnv,
        executor: CommandExecutor | None = None,
        binary: str = "go",
    ) -> None:
        self.env = env
        self.binary = binary
        self._executor = executor or get_executor()

    def which(self) -> str | None:
        """在工具链环境的 PATH 中查找 go 可执行文件"""
        return shutil.which(self.binary, path=self.env.get("PATH") or None)

    def go(
        self, *args: str,
        extra_env: Mapping[str, str] | None = None,
        cwd: str | None = None,
    ) -> CommandResult:
        """执行 go 子命令"""
        env = self.env.as_dict()
        env.update(extra_env or {})
        cmd = [self.binary, *args]
        logger.debug("  go: %s", format_cmd(cmd))
        return self._executor.execute(cmd, cwd=cwd, env=env)

    def env_value(self, name: str) -> str:
        """go env <name>"""
        r = self.go("env", name)
        if not r.success:
            raise ExecutionError(f"go env {name} 失败 (rc={r.returncode}): {r.stderr[:500]}")
        return r.stdout.strip()

    def version(self) -> str:
        """go version 输出中的版本字段，如 go1.4.2"""
        r = self.go("version")
        if not r.success:
            raise ExecutionError(f"go version 失败 (rc={r.returncode}): {r.stderr[:500]}")
        fields = r.stdout.split()
        if len(fields) < 3:
            raise ExecutionError(f"无法解析 go version 输出: {r.stdout.strip()}")
        return fields[2]
