"""缓存指纹

指纹 = sha256(前驱组件摘要... | 当前组件摘要)，前驱按构建顺序排列。
任何前驱的增删改或换序都会改变其后所有组件的指纹。
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

from pkgforge.core.models import Component

# 缓存方案自身变化时递增，使全部已有 tag 同时失效
CACHE_FORMAT_VERSION = 4


def fingerprint(component: Component, predecessors: Sequence[Component]) -> str:
    shasums = [dep.shasum() for dep in predecessors]
    shasums.append(component.shasum())
    return hashlib.sha256("|".join(shasums).encode("utf-8")).hexdigest()


def cache_tag(component: Component, predecessors: Sequence[Component]) -> str:
    """快照 tag: <组件名>-<指纹>-<缓存格式版本>"""
    return f"{component.name}-{fingerprint(component, predecessors)}-{CACHE_FORMAT_VERSION}"
