"""构建目标注册表

静态清单：服务端 / 客户端 / 测试三类目标及各自的平台集合。
注册表构造后只读，静态链接判定在构造 Target 时一次性计算。
"""

from __future__ import annotations

from typing import Any

from kbuild.core.exceptions import ConfigError, ValidationError
from kbuild.core.models import BuildMode, Platform, Target, TargetCategory, parse_platforms

SERVER_TARGETS = (
    "cmd/kube-proxy",
    "cmd/kube-apiserver",
    "cmd/kube-controller-manager",
    "cmd/kubelet",
    "cmd/hyperkube",
    "cmd/kubernetes",
    "plugin/cmd/kube-scheduler",
)

CLIENT_TARGETS = (
    "cmd/kubectl",
)

TEST_TARGETS = (
    "cmd/e2e",
    "cmd/integration",
    "cmd/gendocs",
    "cmd/genman",
    "examples/k8petstore/web-server",
)

SERVER_PLATFORMS = (
    "linux/amd64",
)

# 修改此列表时需同步构建镜像中预装的交叉编译器
CLIENT_PLATFORMS = (
    "linux/amd64",
    "linux/386",
    "linux/arm",
    "darwin/amd64",
    "darwin/386",
    "windows/amd64",
)

# 控制面守护进程，不能依赖宿主机的动态 C 运行时
STATIC_LIBRARIES = frozenset((
    "kube-apiserver",
    "kube-controller-manager",
    "kube-scheduler",
))


def _short_name(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


class TargetRegistry:
    """构建目标注册表（只读）"""

    def __init__(
        self,
        server: tuple[str, ...] | list[str] = SERVER_TARGETS,
        client: tuple[str, ...] | list[str] = CLIENT_TARGETS,
        test: tuple[str, ...] | list[str] = TEST_TARGETS,
        *,
        server_platforms: tuple[str, ...] | list[str] = SERVER_PLATFORMS,
        client_platforms: tuple[str, ...] | list[str] = CLIENT_PLATFORMS,
        static_libraries: frozenset[str] | set[str] = STATIC_LIBRARIES,
    ) -> None:
        self._static_libraries = frozenset(static_libraries)
        self._server = self._make(server, TargetCategory.SERVER)
        self._client = self._make(client, TargetCategory.CLIENT)
        self._test = self._make(test, TargetCategory.TEST)
        self._server_platforms = tuple(parse_platforms(tuple(server_platforms)))
        self._client_platforms = tuple(parse_platforms(tuple(client_platforms)))

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> TargetRegistry:
        """从配置文件的 targets 段构造，缺省项使用内置清单"""
        if not isinstance(data, dict):
            raise ConfigError("targets 配置必须是字典")
        try:
            return cls(
                server=tuple(data.get("server", SERVER_TARGETS) or ()),
                client=tuple(data.get("client", CLIENT_TARGETS) or ()),
                test=tuple(data.get("test", TEST_TARGETS) or ()),
                server_platforms=tuple(data.get("server_platforms", SERVER_PLATFORMS)),
                client_platforms=tuple(data.get("client_platforms", CLIENT_PLATFORMS)),
                static_libraries=frozenset(data.get("static_libraries", STATIC_LIBRARIES)),
            )
        except ValidationError as e:
            raise ConfigError(f"targets 配置无效: {e}") from e

    def _make(self, paths: tuple[str, ...] | list[str], category: TargetCategory) -> tuple[Target, ...]:
        return tuple(
            Target(path=p, category=category, static=self._matches_static(p))
            for p in paths
        )

    def _matches_static(self, path: str) -> bool:
        return "/" in path and _short_name(path) in self._static_libraries

    # ---- 清单 ----

    @property
    def server_targets(self) -> tuple[Target, ...]:
        return self._server

    @property
    def client_targets(self) -> tuple[Target, ...]:
        return self._client

    @property
    def test_targets(self) -> tuple[Target, ...]:
        return self._test

    @property
    def all_targets(self) -> tuple[Target, ...]:
        return self._server + self._client + self._test

    @property
    def server_platforms(self) -> tuple[Platform, ...]:
        return self._server_platforms

    @property
    def client_platforms(self) -> tuple[Platform, ...]:
        return self._client_platforms

    def targets(self, category: TargetCategory | None = None) -> tuple[Target, ...]:
        if category is None:
            return self.all_targets
        return {
            TargetCategory.SERVER: self._server,
            TargetCategory.CLIENT: self._client,
            TargetCategory.TEST: self._test,
        }[category]

    def binaries(self, category: TargetCategory | None = None) -> list[str]:
        """二进制短名列表"""
        return [t.name for t in self.targets(category)]

    def binaries_for(
        self, platform: Platform, category: TargetCategory | None = None,
    ) -> list[str]:
        """某平台下的二进制文件名（windows 带 .exe）"""
        return [t.name + platform.exe_suffix for t in self.targets(category)]

    # ---- 查询 ----

    def is_statically_linked(self, target: Target) -> bool:
        return target.static

    def build_mode(self, target: Target) -> BuildMode:
        return target.mode

    def resolve(self, identifiers: list[str] | tuple[str, ...]) -> list[Target]:
        """将命令行给出的目标（完整路径或短名）映射到注册表中的 Target"""
        by_path = {t.path: t for t in self.all_targets}
        by_name = {t.name: t for t in self.all_targets}
        resolved: list[Target] = []
        unknown: list[str] = []
        for ident in identifiers:
            key = ident.strip().rstrip("/")
            target = by_path.get(key) or by_name.get(key)
            if target is None:
                unknown.append(ident)
            else:
                resolved.append(target)
        if unknown:
            raise ValidationError(
                f"未知的构建目标: {', '.join(unknown)}", details=unknown,
            )
        return resolved
