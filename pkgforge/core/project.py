"""项目清单加载

项目清单 (YAML) 声明安装目录与按构建顺序排列的组件:

    name: demo
    install_dir: /opt/demo
    components:
      - name: preparation
        version: 1.0.0
      - name: zlib
        version: 1.2.11
        source:
          url: https://zlib.net/zlib-1.2.11.tar.gz
          md5: 1c9f62f0778697a09d36121ead88e08e
        relative_path: zlib-1.2.11

每个组件的 predecessors 为清单中排在它之前的全部组件。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from pkgforge.core.config import Config, get_config
from pkgforge.core.exceptions import ConfigError, ValidationError
from pkgforge.core.models import Component, SourceDescriptor
from pkgforge.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

_CHECKSUM_KEYS = ("sha256", "sha512", "sha1", "md5")


@dataclass
class Project:
    """项目：安装目录 + 有序组件链"""

    name: str
    install_dir: Path
    components: list[Component] = field(default_factory=list)

    @classmethod
    def from_file(cls, path: str | Path, config: Config | None = None) -> Project:
        data = load_yaml(path)
        if not data:
            raise ConfigError(f"项目清单不存在或为空: {path}")
        return cls.from_dict(data, config=config)

    @classmethod
    def from_dict(cls, data: dict[str, Any], config: Config | None = None) -> Project:
        cfg = config or get_config()
        name = data.get("name", "")
        install_dir = data.get("install_dir", "")
        if not name or not install_dir:
            raise ConfigError("项目清单必须包含 name 与 install_dir")

        project = cls(name=name, install_dir=Path(install_dir))
        seen: set[str] = set()
        for entry in data.get("components") or []:
            comp = _component_from_entry(entry, project.install_dir, cfg)
            if comp.name in seen:
                raise ConfigError(f"组件重复声明: {comp.name}")
            seen.add(comp.name)
            project.components.append(
                replace(comp, predecessors=tuple(project.components)),
            )
        logger.info("已加载项目 %s: %d 个组件", name, len(project.components))
        return project

    def get(self, name: str) -> Component:
        for comp in self.components:
            if comp.name == name:
                return comp
        raise ValidationError(
            f"组件 '{name}' 不在项目清单中。可用: {[c.name for c in self.components]}"
        )


def _source_from_entry(name: str, raw: dict[str, Any]) -> SourceDescriptor:
    url = raw.get("url") or raw.get("path")
    if not url:
        raise ConfigError(f"组件 '{name}' 的 source 缺少 url")
    for algorithm in _CHECKSUM_KEYS:
        if raw.get(algorithm):
            return SourceDescriptor(
                url=str(url),
                checksum=str(raw[algorithm]),
                algorithm=algorithm,
                cookie=raw.get("cookie", ""),
                warning=raw.get("warning", ""),
            )
    raise ConfigError(f"组件 '{name}' 的 source 缺少摘要 ({'/'.join(_CHECKSUM_KEYS)})")


def _component_from_entry(entry: dict[str, Any], install_dir: Path, cfg: Config) -> Component:
    name = entry.get("name", "")
    version = str(entry.get("version", ""))
    if not name:
        raise ConfigError(f"组件缺少 name: {entry}")

    source = None
    project_file = None
    if entry.get("source"):
        source = _source_from_entry(name, entry["source"])
        project_file = Path(cfg.cache_dir) / (source.filename or f"{name}-{version}")

    source_dir = Path(cfg.source_dir)
    relative_path = entry.get("relative_path") or f"{name}-{version}"
    return Component(
        name=name,
        version=version,
        install_dir=install_dir,
        source=source,
        project_file=project_file,
        source_dir=source_dir,
        project_dir=source_dir / relative_path,
        extra=dict(entry.get("extra") or {}),
    )
