"""
Unit tests for logging helpers.
"""

import json
import logging

from telllm.core.logging_config import (
    ColoredFormatter,
    JSONFormatter,
    LoggerAdapter,
    filter_sensitive_data,
    truncate_large_data,
)


def make_record(msg="hello", level=logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("telllm.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for console and JSON formatters."""

    def test_json_includes_extra_fields(self):
        record = make_record(extra_fields={"client": "10.0.0.7"})
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["client"] == "10.0.0.7"

    def test_colored_does_not_leak_color_to_other_handlers(self):
        record = make_record(level=logging.WARNING)
        output = ColoredFormatter("%(levelname)s %(message)s").format(record)
        assert "\033[33m" in output
        assert record.levelname == "WARNING"

    def test_colored_appends_context(self):
        record = make_record(extra_fields={"client": "10.0.0.7"})
        output = ColoredFormatter("%(message)s").format(record)
        assert output.endswith("[client=10.0.0.7]")


class TestLoggerAdapter:
    """Tests for the context-carrying adapter."""

    def test_merges_context(self):
        adapter = LoggerAdapter(logging.getLogger("telllm.test"), {"client": "10.0.0.7"})
        _, kwargs = adapter.process("msg", {"extra": {"extra_fields": {"turn": 3}}})
        assert kwargs["extra"]["extra_fields"] == {"client": "10.0.0.7", "turn": 3}


class TestSensitiveData:
    """Tests for filter_sensitive_data and truncate_large_data."""

    def test_masks_api_key(self):
        filtered = filter_sensitive_data({"llm_api_key": "sk-123", "port": 2323})
        assert filtered == {"llm_api_key": "***FILTERED***", "port": 2323}

    def test_nested(self):
        filtered = filter_sensitive_data([{"headers": {"Authorization": "Bearer x"}}])
        assert filtered[0]["headers"]["Authorization"] == "***FILTERED***"

    def test_truncate(self):
        assert truncate_large_data("short") == "short"
        long = "a" * 600
        truncated = truncate_large_data(long)
        assert truncated.startswith("a" * 500)
        assert "total length: 600" in truncated
