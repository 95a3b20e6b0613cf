"""CLI - 增量快照缓存命令"""

from __future__ import annotations

import click

from pkgforge.cli import _load_component, _load_project, cli_errors, project_option


def register(group: click.Group) -> None:
    group.add_command(tag)
    group.add_command(restore)
    group.add_command(incremental)
    group.add_command(finalize)
    group.add_command(list_tags)
    group.add_command(hardlinks)


@click.command()
@project_option
@click.argument("name")
def tag(project_path: str, name: str) -> None:
    """输出组件当前的快照 tag"""
    from pkgforge.core.cache import GitCache

    with cli_errors():
        cache = GitCache(_load_component(project_path, name))
        click.echo(cache.tag)


@click.command()
@project_option
@click.argument("name")
def restore(project_path: str, name: str) -> None:
    """构建前按快照恢复安装目录"""
    from pkgforge.core.cache import GitCache

    with cli_errors():
        cache = GitCache(_load_component(project_path, name))
        hit = cache.restore()
        click.echo(f"{'命中' if hit else '未命中'}: {cache.tag}")


@click.command()
@project_option
@click.argument("name")
def incremental(project_path: str, name: str) -> None:
    """构建成功后提交安装目录快照"""
    from pkgforge.core.cache import GitCache

    with cli_errors():
        cache = GitCache(_load_component(project_path, name))
        cache.incremental()
        click.echo(f"已提交快照: {cache.tag}")


@click.command()
@project_option
def finalize(project_path: str) -> None:
    """构建链结束后检出尚未落地的恢复点"""
    from pkgforge.core.cache import GitCache

    with cli_errors():
        project = _load_project(project_path)
        if not project.components:
            click.echo("项目没有组件。")
            return
        cache = GitCache(project.components[-1])
        if cache.finalize():
            click.echo(f"已检出恢复点到 {cache.install_dir}")
        else:
            click.echo("没有待检出的恢复点。")


@click.command(name="tags")
@project_option
def list_tags(project_path: str) -> None:
    """列出快照仓库中的全部 tag"""
    from pkgforge.core.cache import GitCache

    with cli_errors():
        project = _load_project(project_path)
        if not project.components:
            return
        cache = GitCache(project.components[0])
        if not cache.cache_path.is_dir():
            click.echo("快照仓库尚未创建。")
            return
        for t in cache.list_tags():
            click.echo(t)


@click.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
def hardlinks(directory: str) -> None:
    """以 JSON 输出目录中的硬链接分组"""
    from pkgforge.core.cache.hardlinks import dump_hardlink_map, find_hardlinks

    click.echo(dump_hardlink_map(find_hardlinks(directory)))
