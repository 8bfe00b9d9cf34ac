"""集中配置管理

提供统一的配置入口：先从 YAML 文件加载，再由环境变量覆盖。

环境变量:
  KUBE_ROOT            源码树根目录
  KUBE_OUTPUT          输出根目录（默认 <root>/_output/local）
  KUBE_OUTPUT_BINPATH  产物放置目录（默认 <output>/bin）
  KUBE_EXTRA_GOPATH    追加到 GOPATH 的路径
  KUBE_NO_GODEPS       非空时不把 Godeps/_workspace 加入 GOPATH
  TRAVIS               为 "true" 时跳过 go 版本检查
  KUBE_BUILD_PLATFORMS 空白分隔的平台列表
  KUBE_GOFLAGS         额外 go 参数（按 shell 规则切分，保留引号）
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Mapping

from kbuild.core.exceptions import ConfigError
from kbuild.core.models import Platform, parse_platforms
from kbuild.core.targets import TargetRegistry
from kbuild.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "configs/kbuild.yml"

# 字符串字段 -> 环境变量
_ENV_FIELDS = {
    "source_root": "KUBE_ROOT",
    "output_dir": "KUBE_OUTPUT",
    "output_bindir": "KUBE_OUTPUT_BINPATH",
    "extra_gopath": "KUBE_EXTRA_GOPATH",
    "goflags": "KUBE_GOFLAGS",
}


@dataclass
class Config:
    """构建编排全局配置"""

    # 源码与输出
    source_root: str = "."
    output_dir: str = ""
    output_bindir: str = ""

    # 工具链
    go_package: str = "github.com/GoogleCloudPlatform/kubernetes"
    go_binary: str = "go"
    min_go_version: str = "go1.2"
    godeps_workspace: str = "Godeps/_workspace"
    extra_gopath: str = ""
    no_godeps: bool = False
    ci: bool = False

    # 构建
    build_platforms: list[str] = field(default_factory=list)
    goflags: str = ""

    # 目标清单覆盖（结构同内置清单）
    targets: dict[str, Any] = field(default_factory=dict)

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件无效 {path}: {e}") from e
        cfg.extra = extra
        return cfg

    def with_env(self, environ: Mapping[str, str]) -> Config:
        """返回叠加环境变量后的新配置（不修改自身）"""
        data = asdict(self)
        for name, var in _ENV_FIELDS.items():
            value = environ.get(var, "")
            if value:
                data[name] = value
        if environ.get("KUBE_NO_GODEPS", ""):
            data["no_godeps"] = True
        if environ.get("TRAVIS", "") == "true":
            data["ci"] = True
        platforms = environ.get("KUBE_BUILD_PLATFORMS", "").split()
        if platforms:
            data["build_platforms"] = platforms
        return Config(**data)

    # ---- 派生路径 ----

    @property
    def root_path(self) -> Path:
        return Path(self.source_root).resolve()

    @property
    def output_path(self) -> Path:
        if self.output_dir:
            return Path(self.output_dir).resolve()
        return self.root_path / "_output" / "local"

    @property
    def bindir_path(self) -> Path:
        if self.output_bindir:
            return Path(self.output_bindir).resolve()
        return self.output_path / "bin"

    @property
    def gopath_root(self) -> Path:
        """工作区 GOPATH 根目录"""
        return self.output_path / "go"

    @property
    def version_package(self) -> str:
        return f"{self.go_package}/pkg/version"

    # ---- 派生值 ----

    def goflag_list(self) -> list[str]:
        """切分 KUBE_GOFLAGS，保留其中的引号字符串"""
        try:
            return shlex.split(self.goflags)
        except ValueError as e:
            raise ConfigError(f"KUBE_GOFLAGS 解析失败: {e}") from e

    def platforms(self) -> list[Platform]:
        return parse_platforms(self.build_platforms)

    def registry(self) -> TargetRegistry:
        if self.targets:
            return TargetRegistry.from_mapping(self.targets)
        return TargetRegistry()


def load_config(
    path: str = DEFAULT_CONFIG_FILE, environ: Mapping[str, str] | None = None,
) -> Config:
    """加载配置文件并叠加环境变量"""
    cfg = Config.from_file(path)
    return cfg.with_env(os.environ if environ is None else environ)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_FILE) -> Config:
    """从文件和环境变量初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = load_config(path)
    logger.info("配置已加载: %s", path)
    return _current
