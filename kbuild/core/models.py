"""核心数据模型

所有核心数据类集中定义，其他模块统一从此处导入
Platform / Target / Binary 及构建结果实体。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from kbuild.core.exceptions import ValidationError

# =========================================================================
# 平台
# =========================================================================


@dataclass(frozen=True)
class Platform:
    """目标平台 (操作系统, 架构)，规范字符串形式为 os/arch"""

    os: str
    arch: str

    @classmethod
    def parse(cls, value: str) -> Platform:
        """从 os/arch 字符串解析"""
        parts = value.strip().split("/")
        if len(parts) != 2 or not all(parts):
            raise ValidationError(f"无效的平台格式 '{value}'，应为 os/arch")
        return cls(os=parts[0], arch=parts[1])

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"

    @property
    def dirname(self) -> str:
        """工具链交叉编译产物的子目录名，如 darwin_amd64"""
        return f"{self.os}_{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.is_windows else ""

    def bin_dir(self, base: Path, host: Platform) -> Path:
        """go install 的产物目录：宿主平台直接在 base 下，其余在 base/<os>_<arch>"""
        return base if self == host else base / self.dirname


def parse_platforms(values: list[str] | tuple[str, ...]) -> list[Platform]:
    """批量解析平台字符串，保持顺序"""
    return [Platform.parse(v) for v in values]


# =========================================================================
# 构建目标
# =========================================================================


class TargetCategory(str, Enum):
    SERVER = "server"
    CLIENT = "client"
    TEST = "test"


class BuildMode(str, Enum):
    """构建方式：static 关闭 cgo 并使用独立 installsuffix"""

    STATIC = "static"
    DYNAMIC = "dynamic"


class PlacementMode(str, Enum):
    """产物落盘方式：go install 或 go build -o"""

    INSTALL = "install"
    BUILD = "build"


@dataclass(frozen=True)
class Target:
    """可构建单元，以源码树内路径标识

    static 在构造时由注册表根据静态链接白名单计算并缓存。
    """

    path: str
    category: TargetCategory
    static: bool = False

    @property
    def name(self) -> str:
        """二进制短名（路径最后一段）"""
        return self.path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def mode(self) -> BuildMode:
        return BuildMode.STATIC if self.static else BuildMode.DYNAMIC

    def package(self, go_package: str) -> str:
        """完整 Go 包路径"""
        return f"{go_package}/{self.path}"


@dataclass(frozen=True)
class Binary:
    """某个 Target 针对某个 Platform 的构建产物"""

    target: Target
    platform: Platform
    host: Platform

    @property
    def filename(self) -> str:
        return self.target.name + self.platform.exe_suffix

    @property
    def subdir(self) -> str | None:
        """平台限定子目录，与宿主平台一致时为 None"""
        path = self.platform.bin_dir(Path(), self.host)
        return path.name or None

    def output_path(self, bin_dir: Path) -> Path:
        """工具链原生 bin 目录下的产物路径"""
        return self.platform.bin_dir(bin_dir, self.host) / self.filename


# =========================================================================
# 构建结果
# =========================================================================


@dataclass
class BuildOutcome:
    """单个 (目标, 平台) 单元的构建结果"""

    target: Target
    platform: Platform
    status: str  # "success", "failed"
    message: str = ""
    output_path: str = ""
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == "success"


@dataclass
class BuildReport:
    """一次构建调用的矩阵结果汇总"""

    platforms: list[Platform] = field(default_factory=list)
    targets: list[Target] = field(default_factory=list)
    outcomes: list[BuildOutcome] = field(default_factory=list)
    version_ldflags: str = ""

    @property
    def failed(self) -> list[BuildOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def success(self) -> bool:
        return not self.failed

    def summary(self) -> dict[str, int]:
        return {
            "total": len(self.outcomes),
            "passed": sum(1 for o in self.outcomes if o.success),
            "failed": len(self.failed),
        }
