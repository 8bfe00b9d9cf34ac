"""平台解析

职责:
- 查询工具链认定的宿主平台
- 叠加 GOOS/GOARCH 覆盖得到当前平台
- 展开一次构建调用的平台列表
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from kbuild.core.models import Platform
from kbuild.services.toolchain import GoToolchain

logger = logging.getLogger(__name__)


class PlatformResolver:
    """平台解析器

    go 在目标平台等于宿主平台时的行为略有不同（产物不进子目录），
    因此宿主平台以工具链的判断为准。
    """

    def __init__(self, toolchain: GoToolchain) -> None:
        self._toolchain = toolchain
        self._host: Platform | None = None

    def host_platform(self) -> Platform:
        """go env GOHOSTOS/GOHOSTARCH"""
        if self._host is None:
            self._host = Platform(
                os=self._toolchain.env_value("GOHOSTOS"),
                arch=self._toolchain.env_value("GOHOSTARCH"),
            )
            logger.debug("宿主平台: %s", self._host)
        return self._host

    def current_platform(self) -> Platform:
        """宿主平台，GOOS/GOARCH 显式设置时优先"""
        env = self._toolchain.env
        os_name = env.get("GOOS")
        arch = env.get("GOARCH")
        if os_name and arch:
            return Platform(os=os_name, arch=arch)
        host = self.host_platform()
        return Platform(os=os_name or host.os, arch=arch or host.arch)

    def resolve_platforms(self, requested: Sequence[Platform]) -> list[Platform]:
        """空列表展开为 [宿主平台]，否则原样保序返回"""
        if not requested:
            return [self.host_platform()]
        return list(requested)

    @contextmanager
    def platform_env(self, platform: Platform) -> Iterator[None]:
        """单个平台构建期间的 GOOS/GOARCH 作用域"""
        with self._toolchain.env.platform_env(platform):
            yield
