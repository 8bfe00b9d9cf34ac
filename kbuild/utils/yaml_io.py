"""YAML 配置读取"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from kbuild.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# 配置文件最大 1MB
MAX_YAML_SIZE = 1024 * 1024


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 映射

    文件不存在或为空时返回空字典；超限、格式错误或顶层不是映射时抛出 ConfigError。
    """
    p = Path(path)
    if not p.exists():
        logger.debug("配置文件不存在，使用默认值: %s", p)
        return {}

    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ConfigError(f"配置文件过大: {p} ({size} 字节)，上限 {MAX_YAML_SIZE} 字节")

    try:
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"配置文件 YAML 格式错误 {p}: {e}") from e
    except OSError as e:
        raise ConfigError(f"读取配置文件失败 {p}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"配置文件顶层必须是映射: {p} (实际为 {type(data).__name__})")
    return data
