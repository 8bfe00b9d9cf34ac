"""统一异常体系

所有业务异常继承 KBuildError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出友好提示并以 exit_code 退出进程。
"""

from __future__ import annotations


class KBuildError(Exception):
    """构建编排基础异常"""

    code: str = "UNKNOWN"
    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(KBuildError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(KBuildError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ExecutionError(KBuildError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


class FilesystemError(KBuildError):
    """工作区链接创建或产物拷贝失败"""

    code = "FILESYSTEM_ERROR"


class ToolchainNotFoundError(KBuildError):
    """PATH 中找不到 go 工具链"""

    code = "TOOLCHAIN_NOT_FOUND"
    exit_code = 2


class ToolchainVersionTooOldError(KBuildError):
    """go 工具链版本低于最低要求"""

    code = "TOOLCHAIN_VERSION_TOO_OLD"
    exit_code = 2

    def __init__(self, detected: str, minimum: str) -> None:
        super().__init__(
            f"检测到 go 版本: {detected}，要求 {minimum} 或更高版本，"
            f"请安装 {minimum} 或更新的 Go"
        )
        self.detected = detected
        self.minimum = minimum


class StdlibPrebuiltMissingError(KBuildError):
    """静态链接所需的 cgo 标准库未预编译，且 GOROOT/pkg 不可写"""

    code = "STDLIB_PREBUILT_MISSING"


class CompileError(KBuildError):
    """单个 (目标, 平台) 编译失败"""

    code = "COMPILE_ERROR"
