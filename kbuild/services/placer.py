"""产物放置

go install 把宿主平台产物直接放在 $GOPATH/bin，交叉编译产物放在
$GOPATH/bin/<os>_<arch>。这里把它们统一拷贝到 <bindir>/<os>/<arch>，
下游打包只需面对一种目录结构。

放置只增不删：未在本次构建的平台直接跳过，历史产物保留。
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from pathlib import Path

from kbuild.core.exceptions import FilesystemError
from kbuild.core.models import Platform

logger = logging.getLogger(__name__)


class ArtifactPlacer:
    """产物放置器"""

    def __init__(self, bin_dir: Path, host: Platform, platforms: Sequence[Platform]) -> None:
        self.bin_dir = bin_dir
        self.host = host
        self.platforms = list(platforms)

    def source_dir(self, platform: Platform) -> Path:
        return platform.bin_dir(self.bin_dir, self.host)

    def place_binaries(self, output_bindir: Path) -> list[Path]:
        """拷贝各平台一级目录下的普通文件，返回已放置的产物路径"""
        logger.info("放置产物到 %s", output_bindir)
        placed: list[Path] = []
        for platform in self.platforms:
            src = self.source_dir(platform)
            if not src.is_dir():
                logger.debug("  跳过未构建的平台: %s (%s 不存在)", platform, src)
                continue
            dest = output_bindir / platform.os / platform.arch
            placed.extend(self._copy_files(src, dest))
        return placed

    @staticmethod
    def _copy_files(src: Path, dest: Path) -> list[Path]:
        copied: list[Path] = []
        try:
            dest.mkdir(parents=True, exist_ok=True)
            for entry in sorted(src.iterdir()):
                if entry.is_symlink() or not entry.is_file():
                    continue
                target = dest / entry.name
                # copy2 保留权限位和时间戳
                shutil.copy2(entry, target)
                copied.append(target)
        except OSError as e:
            raise FilesystemError(f"拷贝产物失败 {src} -> {dest}: {e}") from e
        logger.info("  %s: %d 个文件", dest, len(copied))
        return copied
