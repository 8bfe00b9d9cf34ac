"""kbuild 日志配置

日志统一写 stderr，stdout 只留给命令结果（构建汇总、GOPATH、ldflags 等），
便于脚本直接捕获。KBUILD_LOG_JSON=1 时输出逐行 JSON 供 CI 解析。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"

# 通过 logger.xxx(..., extra={...}) 附带的构建单元字段
CELL_FIELDS = ("target", "platform")


class JSONFormatter(logging.Formatter):
    """逐行 JSON 日志

    {"timestamp": ..., "level": "ERROR", "logger": "kbuild.services.builder",
     "message": ..., "line": 42, "target": "cmd/kubelet", "platform": "linux/arm"}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }
        for key in CELL_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = str(value)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器；重复调用会替换之前的 handler"""
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def reset_logging() -> None:
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
