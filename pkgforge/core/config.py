"""集中配置管理

缓存目录、下载重试次数、重定向上限等统一从这里读取。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pkgforge.core.exceptions import ConfigError
from pkgforge.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """框架全局配置"""

    # 目录
    base_dir: str = "/var/cache/pkgforge"
    cache_dir: str = ""        # 源码包下载目录，默认 base_dir/cache
    source_dir: str = ""       # 解压根目录，默认 base_dir/src
    git_cache_dir: str = ""    # 快照仓库根目录，默认 base_dir/cache/git_cache

    # 拉取
    download_attempts: int = 5
    max_redirects: int = 10
    fetch_timeout: int = 60

    # 快照仓库提交身份
    git_user_name: str = "PkgForge Git Cache"
    git_user_email: str = "pkgforge@localhost"

    # 日志
    log_level: str = "INFO"
    json_logs: bool = False

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        base = Path(self.base_dir)
        self.cache_dir = self.cache_dir or str(base / "cache")
        self.source_dir = self.source_dir or str(base / "src")
        self.git_cache_dir = self.git_cache_dir or str(Path(self.cache_dir) / "git_cache")
        if self.download_attempts < 1:
            raise ConfigError(f"download_attempts 必须 >= 1，实际 {self.download_attempts}")
        if self.max_redirects < 0:
            raise ConfigError(f"max_redirects 不能为负数，实际 {self.max_redirects}")

    @classmethod
    def from_file(cls, path: str = "configs/pkgforge.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件内容无效: {path} - {e}") from e
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict:
        from dataclasses import asdict
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/pkgforge.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current


def reset_config() -> None:
    """清空全局配置（测试用）"""
    global _current  # noqa: PLW0603
    _current = None
