"""硬链接保持

git 不记录硬链接关系。提交快照前扫描安装目录，按 (st_dev, st_ino) 分组得到
{主路径: [从路径...]}，以 JSON 写入提交说明；检出快照后据此重新建立硬链接。
"""

from __future__ import annotations

import json
import logging
import os
import stat
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

HardlinkMap = dict[str, list[str]]


def iter_regular_files(root: str | Path) -> Iterator[str]:
    """按排序后的目录遍历顺序产出普通文件路径（不跟随符号链接）"""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            yield os.path.join(dirpath, name)


def find_hardlinks(root: str | Path) -> HardlinkMap:
    """扫描 root 下链接数大于 1 的普通文件，返回硬链接分组

    每组中最先遍历到的路径为主路径，其余为从路径；链接数为 1 的文件不出现。
    """
    groups: dict[tuple[int, int], list[str]] = {}
    for path in iter_regular_files(root):
        st = os.lstat(path)
        if not stat.S_ISREG(st.st_mode) or st.st_nlink <= 1:
            continue
        groups.setdefault((st.st_dev, st.st_ino), []).append(path)

    return {
        paths[0]: paths[1:]
        for paths in groups.values()
        if len(paths) > 1
    }


def restore_hardlinks(links: HardlinkMap) -> int:
    """将每个从路径强制重建为主路径的硬链接，返回重建数量"""
    count = 0
    for primary, secondaries in links.items():
        for secondary in secondaries:
            force_link(primary, secondary)
            count += 1
    if count:
        logger.info("已重建 %d 个硬链接", count)
    return count


def force_link(src: str | Path, dest: str | Path) -> None:
    """创建 dest -> src 硬链接，dest 已存在时覆盖"""
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(f".{dest.name}.pkgforge-link")
    tmp.unlink(missing_ok=True)
    os.link(src, tmp)
    os.replace(tmp, dest)


def dump_hardlink_map(links: HardlinkMap) -> str:
    return json.dumps(links, indent=2, sort_keys=True)


def parse_hardlink_map(body: str) -> HardlinkMap:
    """解析提交说明中的硬链接 JSON，空内容视为 {}"""
    text = body.strip()
    if not text:
        return {}
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"硬链接记录不是 JSON 对象: {text[:200]}")
    return {str(k): [str(p) for p in v] for k, v in data.items()}
