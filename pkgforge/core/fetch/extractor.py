"""源码包解压 - 按扩展名分派

支持 tar.gz / tar.bz2 / tar.xz / zip / 7z；无法识别的扩展名视为已解包内容，
直接复制到源码目录。
"""

from __future__ import annotations

import logging
import shutil
import tarfile
import zipfile
from pathlib import Path

from pkgforge.core.exceptions import ExecutionError, ExtractionError
from pkgforge.utils.shell import run_cmd

logger = logging.getLogger(__name__)

# (后缀, 格式) 按顺序匹配
_FORMATS: tuple[tuple[tuple[str, ...], str], ...] = (
    ((".gz", ".tgz"), "gztar"),
    ((".bz2", ".tbz2", ".tbz"), "bztar"),
    ((".7z",), "7z"),
    ((".zip",), "zip"),
    ((".xz", ".txz"), "xztar"),
)

_TAR_MODES = {"gztar": "r:gz", "bztar": "r:bz2", "xztar": "r:xz"}


def archive_format(path: str | Path) -> str:
    """返回归档格式名，无法识别时返回 "copy" """
    name = Path(path).name.lower()
    for suffixes, fmt in _FORMATS:
        if name.endswith(suffixes):
            return fmt
    return "copy"


class ArchiveExtractor:
    """归档解压器"""

    def extract(self, archive: Path, source_dir: Path, project_dir: Path) -> Path:
        """将 archive 解压到 source_dir，返回源码目录

        Raises:
            ExtractionError: 归档损坏、格式不符或外部解压命令失败
        """
        fmt = archive_format(archive)
        logger.info("解压 %s -> %s (格式 %s)", archive, source_dir, fmt)
        source_dir.mkdir(parents=True, exist_ok=True)
        try:
            if fmt in _TAR_MODES:
                with tarfile.open(archive, _TAR_MODES[fmt]) as tf:
                    tf.extractall(path=str(source_dir), filter="data")
            elif fmt == "zip":
                with zipfile.ZipFile(archive) as zf:
                    zf.extractall(str(source_dir))
            elif fmt == "7z":
                run_cmd(
                    ["7z", "x", str(archive), f"-o{source_dir}", "-r", "-y"],
                    cwd=str(source_dir), label="7z 解压",
                )
            else:
                logger.info("%s 不是归档文件，复制到 %s", archive, project_dir)
                project_dir.mkdir(parents=True, exist_ok=True)
                shutil.copy2(archive, project_dir)
        except (OSError, tarfile.TarError, zipfile.BadZipFile, ExecutionError) as e:
            raise ExtractionError(f"解压失败 {archive}: {e}") from e
        return project_dir
