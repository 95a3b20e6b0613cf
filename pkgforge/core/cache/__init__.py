"""增量快照缓存模块

- fingerprint.py: 组件指纹与 tag
- hardlinks.py: 硬链接扫描与重建
- git_cache.py: 基于 git 的快照仓库
"""

from pkgforge.core.cache.fingerprint import CACHE_FORMAT_VERSION, cache_tag, fingerprint
from pkgforge.core.cache.git_cache import RESTORE_MARKER, GitCache
from pkgforge.core.cache.hardlinks import find_hardlinks, restore_hardlinks

__all__ = [
    "CACHE_FORMAT_VERSION",
    "RESTORE_MARKER",
    "GitCache",
    "cache_tag",
    "find_hardlinks",
    "fingerprint",
    "restore_hardlinks",
]
