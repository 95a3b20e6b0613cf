"""CLI - 源码包拉取命令"""

from __future__ import annotations

import click

from pkgforge.cli import _load_component, _load_project, cli_errors, project_option


def register(group: click.Group) -> None:
    group.add_command(fetch)
    group.add_command(clean)
    group.add_command(describe)


@click.command()
@project_option
@click.argument("names", nargs=-1)
def fetch(project_path: str, names: tuple[str, ...]) -> None:
    """拉取并校验源码包（不指定组件则拉取全部）"""
    from pkgforge.core.fetch import NetFetcher

    with cli_errors():
        project = _load_project(project_path)
        components = [project.get(n) for n in names] if names else project.components
        for comp in components:
            if comp.source is None:
                continue
            fetcher = NetFetcher(comp)
            downloaded = fetcher.fetch()
            state = "已下载" if downloaded else "缓存命中"
            click.echo(f"{state}: {comp.name} -> {fetcher.project_file}")


@click.command()
@project_option
@click.argument("name")
def clean(project_path: str, name: str) -> None:
    """删除旧源码目录并重新解压"""
    from pkgforge.core.fetch import NetFetcher

    with cli_errors():
        fetcher = NetFetcher(_load_component(project_path, name))
        fetcher.clean()
        click.echo(f"已解压: {name} -> {fetcher.project_dir}")


@click.command()
@project_option
@click.argument("name")
def describe(project_path: str, name: str) -> None:
    """显示组件源码来源信息"""
    from pkgforge.core.fetch import NetFetcher

    with cli_errors():
        fetcher = NetFetcher(_load_component(project_path, name))
        click.echo(fetcher.description().rstrip())
        click.echo(f"version guid:   {fetcher.version_guid()}")
