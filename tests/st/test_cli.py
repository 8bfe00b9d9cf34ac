"""命令行端到端测试（假 go 工具链 + 临时源码树）"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from kbuild.cli import main
from kbuild.core import config as cfgmod
from kbuild.utils import shell
from kbuild.utils.logger import reset_logging

_CLEARED_VARS = (
    "GOOS", "GOARCH", "GOBIN", "TRAVIS", "KUBE_BUILD_PLATFORMS", "KUBE_GOFLAGS",
    "KUBE_OUTPUT_BINPATH", "KUBE_EXTRA_GOPATH", "KUBE_NO_GODEPS",
    "KUBE_GIT_COMMIT", "KUBE_GIT_VERSION", "KUBE_GIT_TREE_STATE",
)


@pytest.fixture()
def cli_env(
    tmp_path: Path, source_root: Path, go_path_dir: Path,
    fake_executor, monkeypatch: pytest.MonkeyPatch,
):
    """隔离的 CLI 运行环境"""
    for var in _CLEARED_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("KUBE_ROOT", str(source_root))
    monkeypatch.setenv("KUBE_OUTPUT", str(tmp_path / "output"))
    monkeypatch.setenv("PATH", str(go_path_dir))
    monkeypatch.setattr(shell, "_default_executor", fake_executor)
    monkeypatch.setattr(cfgmod, "_current", None)
    yield tmp_path
    reset_logging()


def _invoke(tmp_path: Path, *args: str):
    return CliRunner().invoke(main, ["-c", str(tmp_path / "absent.yml"), *args])


# =========================================================================
# build / place
# =========================================================================


class TestBuildCommand:
    def test_build_host(self, cli_env: Path, fake_executor) -> None:
        r = _invoke(cli_env, "build", "kubectl")
        assert r.exit_code == 0, r.output
        assert "[OK  ] linux/amd64" in r.output
        assert "总计: 1  成功: 1  失败: 0" in r.output
        assert (cli_env / "output" / "bin" / "linux" / "amd64" / "kubectl").is_file()

    def test_go_flags_pass_through(self, cli_env: Path, fake_executor) -> None:
        r = _invoke(cli_env, "build", "--no-place", "kubectl", "-race")
        assert r.exit_code == 0, r.output
        assert "-race" in fake_executor.go_calls()[0]["cmd"]
        assert not (cli_env / "output" / "bin" / "linux").exists()

    def test_use_go_build(self, cli_env: Path, fake_executor) -> None:
        r = _invoke(cli_env, "build", "--use-go-build", "kubectl")
        assert r.exit_code == 0, r.output
        assert fake_executor.go_calls()[0]["cmd"][1] == "build"

    def test_failure_exit_code(self, cli_env: Path, fake_executor) -> None:
        fake_executor.fail_targets = {"kubelet"}
        r = _invoke(cli_env, "build", "kubectl", "kubelet")
        assert r.exit_code == 1
        assert "[FAIL] linux/amd64" in r.output
        assert "失败: 1" in r.output

    def test_toolchain_missing(self, cli_env: Path, monkeypatch) -> None:
        monkeypatch.setenv("PATH", str(cli_env / "empty"))
        r = _invoke(cli_env, "build", "kubectl")
        assert r.exit_code == 2
        assert "!!!" in r.output

    def test_toolchain_too_old(self, cli_env: Path, fake_executor) -> None:
        fake_executor.go_version = "go1.1"
        r = _invoke(cli_env, "build", "kubectl")
        assert r.exit_code == 2

    def test_unknown_target(self, cli_env: Path) -> None:
        r = _invoke(cli_env, "build", "no-such-cmd")
        assert r.exit_code == 1
        assert "no-such-cmd" in r.output

    def test_bad_platform(self, cli_env: Path) -> None:
        r = _invoke(cli_env, "build", "--platform", "linux", "kubectl")
        assert r.exit_code == 1
        assert "os/arch" in r.output

    def test_platforms_from_env(self, cli_env: Path, monkeypatch) -> None:
        monkeypatch.setenv("KUBE_BUILD_PLATFORMS", "darwin/amd64 windows/amd64")
        r = _invoke(cli_env, "build", "kubectl")
        assert r.exit_code == 0, r.output
        bindir = cli_env / "output" / "bin"
        assert (bindir / "darwin" / "amd64" / "kubectl").is_file()
        assert (bindir / "windows" / "amd64" / "kubectl.exe").is_file()


class TestPlaceCommand:
    def test_nothing_to_place(self, cli_env: Path) -> None:
        r = _invoke(cli_env, "place")
        assert r.exit_code == 0
        assert "没有可放置的产物" in r.output

    def test_place_custom_bindir(self, cli_env: Path) -> None:
        assert _invoke(cli_env, "build", "--no-place", "kubectl").exit_code == 0
        dest = cli_env / "dist"
        r = _invoke(cli_env, "place", "--bindir", str(dest))
        assert r.exit_code == 0, r.output
        assert (dest / "linux" / "amd64" / "kubectl").is_file()


# =========================================================================
# 查询命令
# =========================================================================


class TestQueryCommands:
    def test_targets(self, cli_env: Path) -> None:
        r = _invoke(cli_env, "targets", "--category", "server")
        assert r.exit_code == 0
        assert "* kube-apiserver" in r.output
        assert "kubectl" not in r.output

    def test_platforms(self, cli_env: Path) -> None:
        r = _invoke(cli_env, "platforms")
        assert r.exit_code == 0
        assert "宿主平台: linux/amd64" in r.output
        assert "windows/amd64" in r.output

    def test_setup(self, cli_env: Path) -> None:
        r = _invoke(cli_env, "setup")
        assert r.exit_code == 0
        assert f"GOPATH={(cli_env / 'output' / 'go').resolve()}:" in r.output

    def test_version_flags(self, cli_env: Path, monkeypatch) -> None:
        monkeypatch.setenv("KUBE_GIT_VERSION", "v1.0.0")
        r = _invoke(cli_env, "version-flags")
        assert r.exit_code == 0
        assert "gitVersion v1.0.0" in r.output
