"""服务层

拆分说明:
- toolchain.py: go 命令封装与工具链环境
- platform.py: 宿主/当前平台解析
- environment.py: GOPATH 工作区与工具链校验
- version.py: 版本戳 -ldflags
- builder.py: 平台 × 目标 矩阵构建
- placer.py: 产物放置
- build_service.py: 串联以上步骤
"""

from kbuild.services.build_service import BuildService
from kbuild.services.builder import BuildExecutor
from kbuild.services.environment import EnvironmentSetup
from kbuild.services.placer import ArtifactPlacer
from kbuild.services.platform import PlatformResolver

__all__ = [
    "ArtifactPlacer",
    "BuildExecutor",
    "BuildService",
    "EnvironmentSetup",
    "PlatformResolver",
]
