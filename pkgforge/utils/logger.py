"""pkgforge 日志配置

提供统一的日志配置和格式化功能，支持普通文本和结构化 JSON 两种输出格式。

快照缓存与拉取器在日志调用中通过 extra={"component": ..., "tag": ...} 附带组件上下文，
两种格式器都会把它输出出来，便于在整条构建链的日志中按组件过滤。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

# 日志记录上可选携带的构建上下文字段
CONTEXT_FIELDS = ("component", "tag")


def _context(record: logging.LogRecord) -> dict[str, str]:
    return {
        key: str(getattr(record, key))
        for key in CONTEXT_FIELDS
        if getattr(record, key, None)
    }


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "INFO",
            "logger": "pkgforge.core.cache.git_cache",
            "message": "log message",
            "module": "git_cache",
            "function": "restore",
            "line": 42,
            "component": "zlib@1.2.11" (仅在有上下文时),
            "tag": "zlib-...-4" (仅在有上下文时),
            "exception": "traceback..." (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            # 使用 record.created，记录事件发生时间而非格式化时间
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        log_entry.update(_context(record))
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """人类可读格式，有组件上下文时在消息后追加 [component tag]"""

    FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s%(context)s"

    def __init__(self) -> None:
        super().__init__(self.FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        ctx = _context(record)
        record.context = f" [{' '.join(ctx.values())}]" if ctx else ""
        return super().format(record)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR, CRITICAL）
        json_output: 为 True 时使用 JSON 格式（适用于 CI），否则使用人类可读格式

    说明:
        - 输出到 stderr
        - 自动清理已有 handlers，避免重复输出
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else TextFormatter())
    root.addHandler(handler)


def reset_logging() -> None:
    """重置根日志器配置，清理所有已注册的 handlers"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
