"""日志配置测试"""

from __future__ import annotations

import json
import logging
import sys

from pkgforge.utils.logger import JSONFormatter, TextFormatter, reset_logging, setup_logging


def _record(**extra: str) -> logging.LogRecord:
    record = logging.LogRecord(
        name="pkgforge.core.cache.git_cache", level=logging.INFO,
        pathname=__file__, lineno=1, msg="提交快照", args=(), exc_info=None,
    )
    record.__dict__.update(extra)
    return record


class TestJSONFormatter:
    def test_fields(self) -> None:
        record = logging.LogRecord(
            name="pkgforge.core.fetch.fetcher", level=logging.WARNING,
            pathname=__file__, lineno=42, msg="重试 %d/%d", args=(1, 5), exc_info=None,
        )
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "WARNING"
        assert data["logger"] == "pkgforge.core.fetch.fetcher"
        assert data["message"] == "重试 1/5"
        assert data["line"] == 42
        assert "exception" not in data

    def test_exception(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            exc_info = sys.exc_info()
        record = logging.LogRecord(
            name="x", level=logging.ERROR, pathname=__file__, lineno=1,
            msg="failed", args=(), exc_info=exc_info,
        )
        data = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in data["exception"]

    def test_component_context(self) -> None:
        record = _record(component="zlib@1.2.11", tag="zlib-abc-4")
        data = json.loads(JSONFormatter().format(record))
        assert data["component"] == "zlib@1.2.11"
        assert data["tag"] == "zlib-abc-4"


class TestTextFormatter:
    def test_appends_context(self) -> None:
        text = TextFormatter().format(_record(component="zlib@1.2.11", tag="zlib-abc-4"))
        assert text.endswith("提交快照 [zlib@1.2.11 zlib-abc-4]")

    def test_without_context(self) -> None:
        text = TextFormatter().format(_record())
        assert text.endswith("pkgforge.core.cache.git_cache: 提交快照")


class TestSetupLogging:
    def test_single_handler(self) -> None:
        setup_logging("DEBUG")
        setup_logging("WARNING", json_output=True)
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_unknown_level_falls_back_to_info(self) -> None:
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.INFO

    def test_reset(self) -> None:
        setup_logging()
        reset_logging()
        assert logging.getLogger().handlers == []

    def test_text_format_by_default(self) -> None:
        setup_logging()
        assert isinstance(logging.getLogger().handlers[0].formatter, TextFormatter)
