"""核心数据模型

SourceDescriptor / Component 均为不可变数据类，在一次构建调用中由项目清单创建一次。
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

DEFAULT_CHECKSUM_ALGORITHM = "md5"


@dataclass(frozen=True)
class SourceDescriptor:
    """组件源码包来源描述"""

    url: str
    checksum: str
    algorithm: str = DEFAULT_CHECKSUM_ALGORITHM
    cookie: str = ""
    warning: str = ""  # 每次下载前输出的提示

    @property
    def scheme(self) -> str:
        """URI 协议；无协议的本地路径视为 file"""
        scheme = urlsplit(self.url).scheme.lower()
        # Windows 盘符 (C:\...) 会被解析为单字母协议
        if not scheme or len(scheme) == 1:
            return "file"
        return scheme

    @property
    def filename(self) -> str:
        return Path(urlsplit(self.url).path).name

    def to_dict(self) -> dict[str, str]:
        return {
            "url": self.url,
            "checksum": self.checksum.lower(),
            "algorithm": self.algorithm,
        }


@dataclass(frozen=True)
class Component:
    """构建链中的一个软件组件

    predecessors 为当前构建链中排在它之前的组件（按构建顺序），
    是计算缓存指纹的显式输入。
    """

    name: str
    version: str
    install_dir: Path
    source: SourceDescriptor | None = None
    project_file: Path | None = None   # 本地源码包路径
    source_dir: Path | None = None     # 解压根目录
    project_dir: Path | None = None    # 解压后的源码目录
    predecessors: tuple[Component, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def shasum(self) -> str:
        """组件自身（不含前驱）内容相关属性的 sha256 摘要"""
        payload = {
            "name": self.name,
            "version": self.version,
            "install_dir": str(self.install_dir),
            "source": self.source.to_dict() if self.source else None,
            "extra": self.extra,
        }
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    @property
    def log_key(self) -> str:
        return f"{self.name}@{self.version}"
