"""测试共享 fixture"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from pkgforge.core.config import Config, reset_config
from pkgforge.utils.logger import reset_logging
from pkgforge.utils.shell import CommandResult, get_executor, set_executor

_PROXY_VARS = (
    "HTTP_PROXY", "http_proxy",
    "HTTP_PROXY_USER", "http_proxy_user",
    "HTTP_PROXY_PASS", "http_proxy_pass",
    "NO_PROXY", "no_proxy",
)


@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """每个用例使用干净的代理环境变量、全局配置与执行器"""
    for var in _PROXY_VARS:
        monkeypatch.delenv(var, raising=False)
    executor = get_executor()
    reset_config()
    yield
    set_executor(executor)
    reset_config()
    reset_logging()


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    return Config(base_dir=str(tmp_path / "var"))


class FakeExecutor:
    """记录 git 子命令的执行器

    responses 以 git 子命令参数元组为键，未登记的命令返回成功且无输出。
    """

    def __init__(self, responses: dict[tuple[str, ...], CommandResult] | None = None) -> None:
        self.responses = responses or {}
        self.commands: list[list[str]] = []
        self.calls: list[tuple[list[str], str | None]] = []

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        input: str | None = None,  # noqa: A002
    ) -> CommandResult:
        assert isinstance(cmd, list)
        self.commands.append(cmd)
        args = git_args(cmd)
        self.calls.append((args, input))
        return self.responses.get(tuple(args), CommandResult(0, "", ""))

    @property
    def git_calls(self) -> list[list[str]]:
        return [args for args, _ in self.calls]


def git_args(cmd: list[str]) -> list[str]:
    """去掉 git 全局参数，只保留子命令部分"""
    for i, part in enumerate(cmd):
        if part.startswith("--work-tree="):
            return cmd[i + 1:]
    return list(cmd)


class RecordingReporter:
    """记录 explain 调用的报告器"""

    def __init__(self) -> None:
        self.reports: list[tuple[BaseException, object, str]] = []

    def explain(self, error: BaseException, origin: object, summary: str) -> None:
        self.reports.append((error, origin, summary))


@pytest.fixture()
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def make_executor() -> type[FakeExecutor]:
    return FakeExecutor
