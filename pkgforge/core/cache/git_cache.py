"""增量构建快照缓存（基于 git）

以组件安装目录为工作树、以 <git_cache_dir>/<安装目录> 为 git 目录，
每个组件构建成功后提交一次快照并打上指纹 tag。

恢复流程 (restore):
  0. 链首组件（无前驱）先清除上一次构建遗留的恢复标记
  1. 当前组件 tag 已存在 → 将唯一的恢复标记 restore_here 指向它，不改动安装目录
  2. tag 不存在且 restore_here 指向某个前驱的快照 → 检出 restore_here
     （链上最深的有效快照），重建硬链接，删除标记；
     标记指向的不是本链前驱时视为失效，直接删除
  3. 两者都不存在 → 冷构建，什么都不做

构建链跑完后若标记仍在（末尾全部命中），调用 finalize() 把安装目录检出到该快照。
快照仓库的失败统一以 CheckpointStoreError 向报告器说明一次后抛出。
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import NoReturn

from pkgforge.core.cache.fingerprint import cache_tag
from pkgforge.core.cache.hardlinks import (
    HardlinkMap,
    dump_hardlink_map,
    find_hardlinks,
    parse_hardlink_map,
    restore_hardlinks,
)
from pkgforge.core.config import Config, get_config
from pkgforge.core.exceptions import CheckpointStoreError
from pkgforge.core.models import Component
from pkgforge.core.reporter import ErrorReporter, Reporter
from pkgforge.utils.shell import CommandExecutor, CommandResult, get_executor

logger = logging.getLogger(__name__)

RESTORE_MARKER = "restore_here"

# 同时具备 config 与以下条目的目录视为嵌套 git 仓库
REQUIRED_GIT_FILES = ("HEAD", "description", "hooks", "info", "objects", "refs")


class GitCache:
    """单个组件的快照缓存"""

    def __init__(
        self,
        component: Component,
        *,
        config: Config | None = None,
        executor: CommandExecutor | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        cfg = config or get_config()
        self.component = component
        self.install_dir = Path(component.install_dir)
        self.git_cache_dir = Path(cfg.git_cache_dir)
        self.user_name = cfg.git_user_name
        self.user_email = cfg.git_user_email
        self.reporter: Reporter = reporter or ErrorReporter()
        self._executor = executor
        self._tag: str | None = None

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    @property
    def cache_path(self) -> Path:
        """快照仓库路径：安装目录去掉根锚点后挂在 git_cache_dir 下"""
        install = self.install_dir
        if install.is_absolute():
            install = install.relative_to(install.anchor)
        return self.git_cache_dir / install

    @property
    def tag(self) -> str:
        if self._tag is None:
            self._tag = cache_tag(self.component, self.component.predecessors)
            logger.debug("%s 快照 tag: %s", self.component.log_key, self._tag)
        return self._tag

    @property
    def log_context(self) -> dict[str, str]:
        return {"component": self.component.log_key, "tag": self.tag}

    def description(self) -> str:
        return (
            f"component:      {self.component.log_key}\n"
            f"cache tag:      {self.tag}\n"
            f"cache path:     {self.cache_path}\n"
            f"install dir:    {self.install_dir}\n"
        )

    def predecessor_tags(self) -> set[str]:
        """构建链上各前驱组件的快照 tag"""
        return {cache_tag(dep, dep.predecessors) for dep in self.component.predecessors}

    # ------------------------------------------------------------------
    # git 调用
    # ------------------------------------------------------------------

    def git_cmd(self, *args: str, input: str | None = None) -> CommandResult:  # noqa: A002
        """在快照仓库上执行 git 子命令，非零退出时报告并抛 CheckpointStoreError"""
        cmd = [
            "git",
            "-c", "core.autocrlf=false",
            "-c", "core.ignorecase=false",
            f"--git-dir={self.cache_path}",
            f"--work-tree={self.install_dir}",
            *args,
        ]
        logger.debug("  git %s", " ".join(args))
        r = self.executor.execute(cmd, cwd=str(self.install_dir), input=input)
        if not r.success:
            self._fail(
                f"git {' '.join(args)} 失败 (rc={r.returncode}, tag={self.tag}): "
                f"{(r.stderr or r.stdout)[:500]}"
            )
        return r

    def _fail(self, message: str, cause: BaseException | None = None) -> NoReturn:
        err = CheckpointStoreError(message)
        self.reporter.explain(err, self, f"快照仓库操作失败: {self.tag}")
        raise err from cause

    def create_cache_path(self) -> bool:
        """首次使用时初始化快照仓库，返回是否新建"""
        if self.cache_path.is_dir():
            return False
        logger.info("初始化快照仓库: %s", self.cache_path)
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        self.install_dir.mkdir(parents=True, exist_ok=True)
        self.git_cmd("init", "-q")
        self.git_cmd("config", "--local", "user.name", self.user_name)
        self.git_cmd("config", "--local", "user.email", self.user_email)
        self.git_cmd("config", "--local", "commit.gpgsign", "false")
        return True

    def has_tag(self, name: str) -> bool:
        r = self.git_cmd("tag", "-l", name)
        return r.stdout.strip() == name

    def list_tags(self) -> list[str]:
        r = self.git_cmd("tag", "-l")
        return [line.strip() for line in r.stdout.splitlines() if line.strip()]

    def marker_targets(self) -> set[str]:
        """与恢复标记指向同一提交的快照 tag"""
        r = self.git_cmd("tag", "--points-at", RESTORE_MARKER)
        return {line.strip() for line in r.stdout.splitlines() if line.strip()} - {RESTORE_MARKER}

    # ------------------------------------------------------------------
    # 恢复
    # ------------------------------------------------------------------

    def restore(self) -> bool:
        """命中当前组件快照时返回 True（调用方可跳过构建）"""
        logger.info("检查快照缓存: %s", self.component.log_key, extra=self.log_context)
        self.create_cache_path()

        if not self.component.predecessors:
            self.clear_marker()

        if self.has_tag(self.tag):
            logger.info("命中快照 %s，标记为恢复点", self.tag, extra=self.log_context)
            self.git_cmd("tag", "-f", RESTORE_MARKER, self.tag)
            return True

        logger.info("未命中快照: %s", self.tag, extra=self.log_context)
        self._checkout_marker(self.predecessor_tags())
        return False

    def finalize(self) -> bool:
        """构建链末尾仍有未检出的恢复标记时检出它，返回是否发生检出"""
        self.create_cache_path()
        return self._checkout_marker(self.predecessor_tags() | {self.tag})

    def clear_marker(self) -> bool:
        if not self.has_tag(RESTORE_MARKER):
            return False
        logger.info("清除遗留的恢复标记", extra=self.log_context)
        self.git_cmd("tag", "-d", RESTORE_MARKER)
        return True

    def _checkout_marker(self, valid_tags: set[str]) -> bool:
        if not self.has_tag(RESTORE_MARKER):
            return False
        if not self.marker_targets() & valid_tags:
            logger.warning("恢复标记不属于当前构建链，丢弃", extra=self.log_context)
            self.git_cmd("tag", "-d", RESTORE_MARKER)
            return False
        logger.info("检出最近的有效快照到 %s", self.install_dir, extra=self.log_context)
        self.git_cmd("checkout", "-f", RESTORE_MARKER)
        self.restore_hardlinks()
        self.git_cmd("tag", "-d", RESTORE_MARKER)
        return True

    def restore_hardlinks(self) -> int:
        """按最近一次提交说明中的记录重建硬链接"""
        r = self.git_cmd("log", "--format=%b", "-n", "1")
        try:
            links = parse_hardlink_map(r.stdout)
        except ValueError as e:
            self._fail(f"快照硬链接记录无法解析 (tag={self.tag}): {e}", e)
        try:
            return restore_hardlinks(links)
        except OSError as e:
            self._fail(f"重建硬链接失败 (tag={self.tag}): {e}", e)

    # ------------------------------------------------------------------
    # 提交
    # ------------------------------------------------------------------

    def incremental(self) -> None:
        """组件构建成功后提交安装目录快照并打 tag"""
        logger.info(
            "提交快照: %s (tag=%s)", self.component.log_key, self.tag, extra=self.log_context,
        )
        self.create_cache_path()
        self.remove_git_dirs()
        links = self.find_hardlinks()

        self.git_cmd("add", "-A", "-f")
        message = f"Backup of {self.tag}\n\n{dump_hardlink_map(links)}\n"
        self.git_cmd("commit", "-q", "--allow-empty", "-F", "-", input=message)
        self.git_cmd("tag", "-f", self.tag)

    def find_hardlinks(self) -> HardlinkMap:
        if not self.install_dir.is_dir():
            return {}
        return find_hardlinks(self.install_dir)

    def remove_git_dirs(self) -> list[Path]:
        """删除安装目录中嵌套的 git 仓库目录，返回被删除的目录"""
        removed: list[Path] = []
        if not self.install_dir.is_dir():
            return removed
        root = str(self.install_dir)
        for dirpath, dirnames, filenames in os.walk(root):
            if dirpath == root or "config" not in filenames:
                continue
            if all(os.path.exists(os.path.join(dirpath, f)) for f in REQUIRED_GIT_FILES):
                logger.info("删除嵌套 git 目录: %s", dirpath)
                shutil.rmtree(dirpath)
                dirnames[:] = []
                removed.append(Path(dirpath))
        return removed
