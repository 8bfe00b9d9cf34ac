"""测试共享 fixture：记录型命令执行器 + 临时源码树/工具链

整体思路:
  - FakeExecutor 替代真实子进程，按命令返回预设结果并记录每次调用
  - go build -o / go install 会在对应位置写出假产物，便于验证放置逻辑
  - PATH 中放一个可执行的假 go，使工具链存在性检查走真实的 shutil.which
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest

from kbuild.core.config import Config
from kbuild.utils.shell import CommandResult


class FakeExecutor:
    """记录型命令执行器"""

    def __init__(
        self,
        host: str = "linux/amd64",
        go_version: str = "go1.4.2",
        goroot: str = "/usr/local/go",
    ) -> None:
        self.host_os, self.host_arch = host.split("/")
        self.go_version = go_version
        self.goroot = goroot
        self.fail_targets: set[str] = set()
        self.git_available = True
        self.dirty = False
        self.calls: list[dict[str, Any]] = []

    # ---- 查询 ----

    def go_calls(self, subcommand: str | None = None) -> list[dict[str, Any]]:
        """go build / go install 调用记录"""
        subs = (subcommand,) if subcommand else ("build", "install")
        return [
            c for c in self.calls
            if c["cmd"][0] == "go" and len(c["cmd"]) > 1 and c["cmd"][1] in subs
        ]

    def count(self, *prefix: str) -> int:
        return sum(1 for c in self.calls if c["cmd"][:len(prefix)] == list(prefix))

    # ---- 执行 ----

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        env = dict(env or {})
        self.calls.append({"cmd": list(cmd), "cwd": cwd, "env": env})
        if cmd[0] == "git":
            return self._git(cmd[1:])
        if cmd[0] == "go":
            return self._go(cmd[1:], env)
        return CommandResult(returncode=127, stdout="", stderr=f"{cmd[0]}: not found")

    def _git(self, args: list[str]) -> CommandResult:
        if not self.git_available:
            return CommandResult(128, "", "fatal: not a git repository")
        if args[0] == "rev-parse":
            return CommandResult(0, "0123456789abcdef\n", "")
        if args[0] == "status":
            return CommandResult(0, " M README.md\n" if self.dirty else "", "")
        if args[0] == "describe":
            return CommandResult(0, "v0.5.0-12-g0123456789abcd\n", "")
        return CommandResult(0, "", "")

    def _go(self, args: list[str], env: dict[str, str]) -> CommandResult:
        if args[0] == "env":
            values = {
                "GOHOSTOS": self.host_os,
                "GOHOSTARCH": self.host_arch,
                "GOROOT": self.goroot,
            }
            return CommandResult(0, values.get(args[1], "") + "\n", "")
        if args[0] == "version":
            return CommandResult(
                0, f"go version {self.go_version} {self.host_os}/{self.host_arch}\n", "",
            )
        if args[0] in ("build", "install"):
            package = args[-1]
            name = package.rsplit("/", 1)[-1]
            if name in self.fail_targets:
                return CommandResult(2, "", f"# {package}\nundefined: foo")
            self._write_artifact(args, env, name)
            return CommandResult(0, "", "")
        return CommandResult(0, "", "")

    def _write_artifact(self, args: list[str], env: dict[str, str], name: str) -> None:
        if "-o" in args:
            out = Path(args[args.index("-o") + 1])
        else:
            goos = env.get("GOOS", self.host_os)
            goarch = env.get("GOARCH", self.host_arch)
            bin_dir = Path(env["GOPATH"].split(":")[0]) / "bin"
            if (goos, goarch) != (self.host_os, self.host_arch):
                bin_dir = bin_dir / f"{goos}_{goarch}"
            suffix = ".exe" if goos == "windows" else ""
            out = bin_dir / (name + suffix)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(f"binary {name}\n", encoding="utf-8")
        out.chmod(0o755)


@pytest.fixture()
def goroot(tmp_path: Path) -> Path:
    """可写的假 GOROOT（静态链接检查直接通过）"""
    root = tmp_path / "goroot"
    (root / "pkg").mkdir(parents=True)
    return root


@pytest.fixture()
def fake_executor(goroot: Path) -> FakeExecutor:
    return FakeExecutor(goroot=str(goroot))


@pytest.fixture()
def go_path_dir(tmp_path: Path) -> Path:
    """放置假 go 可执行文件的目录"""
    tools = tmp_path / "tools"
    tools.mkdir()
    go = tools / "go"
    go.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    go.chmod(0o755)
    return tools


@pytest.fixture()
def environ(go_path_dir: Path) -> dict[str, str]:
    """隔离的进程环境（不含 GOOS/GOARCH/GOBIN）"""
    return {"PATH": str(go_path_dir), "HOME": os.environ.get("HOME", "/tmp")}


@pytest.fixture()
def source_root(tmp_path: Path) -> Path:
    root = tmp_path / "kubernetes"
    (root / "cmd" / "kubectl").mkdir(parents=True)
    (root / "cmd" / "kubectl" / "kubectl.go").write_text("package main\n", encoding="utf-8")
    return root


@pytest.fixture()
def config(tmp_path: Path, source_root: Path) -> Config:
    return Config(
        source_root=str(source_root),
        output_dir=str(tmp_path / "output"),
    )
