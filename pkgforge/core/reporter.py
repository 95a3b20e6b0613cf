"""错误报告器

拉取 / 解压失败时输出带上下文的错误说明框，之后由调用方重新抛出异常。
报告器只负责「讲清楚」，从不吞掉异常。
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_RULE = "=" * 72


class Reporter(Protocol):
    """错误报告协议 - 测试时可注入记录调用的实现"""

    def explain(self, error: BaseException, origin: Any, summary: str) -> None:
        ...


class ErrorReporter:
    """以日志形式输出错误说明

    origin 若提供 description() 方法（如 NetFetcher），其输出会附在说明中。
    """

    def explain(self, error: BaseException, origin: Any, summary: str) -> None:
        lines = [_RULE, summary, ""]
        describe = getattr(origin, "description", None)
        if callable(describe):
            lines.append(describe().rstrip())
            lines.append("")
        lines.append(f"{type(error).__name__}: {str(error).strip()}")
        lines.append(_RULE)
        logger.error("\n".join(lines))
