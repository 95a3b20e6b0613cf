"""pkgforge 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

import click

from pkgforge import __version__
from pkgforge.core.config import init_config
from pkgforge.core.exceptions import PkgForgeError
from pkgforge.core.models import Component
from pkgforge.core.project import Project
from pkgforge.utils.logger import setup_logging

project_option = click.option(
    "--project", "-p", "project_path", default="project.yml", help="项目清单路径",
)


def _load_project(project_path: str) -> Project:
    return Project.from_file(project_path)


def _load_component(project_path: str, name: str) -> Component:
    return _load_project(project_path).get(name)


@contextmanager
def cli_errors() -> Iterator[None]:
    """将框架异常转换为友好的 CLI 错误输出"""
    try:
        yield
    except PkgForgeError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default="configs/pkgforge.yml", help="配置文件路径")
@click.option("--log-level", default=None, help="日志级别，覆盖配置文件")
@click.option("--json-logs", is_flag=True, default=False, help="输出 JSON 格式日志")
def main(config_path: str, log_level: str | None, json_logs: bool) -> None:
    """pkgforge - 源码拉取与增量构建缓存"""
    cfg = init_config(config_path)
    setup_logging(
        level=log_level or os.getenv("PKGFORGE_LOG_LEVEL") or cfg.log_level,
        json_output=json_logs or os.getenv("PKGFORGE_LOG_JSON", "") == "1" or cfg.json_logs,
    )


# 注册各领域子命令
from pkgforge.cli.cmd_fetch import register as _reg_fetch  # noqa: E402
from pkgforge.cli.cmd_cache import register as _reg_cache  # noqa: E402

_reg_fetch(main)
_reg_cache(main)
