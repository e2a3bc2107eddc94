"""Tests for logging configuration."""

import json
import logging
import sys

from elasticache_sd.config import LoggingConfig
from elasticache_sd.logging_config import JSONFormatter, TextFormatter, configure_logging


class TestJSONFormatter:
    def test_formats_as_json(self):
        formatter = JSONFormatter()
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="hello %s", args=("world",), exc_info=None,
        )
        output = formatter.format(record)
        parsed = json.loads(output)
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test"
        assert "timestamp" in parsed

    def test_includes_extra_fields(self):
        formatter = JSONFormatter()
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="test", args=(), exc_info=None,
        )
        record.cluster_id = "redis-001"  # type: ignore
        record.target_groups = 4  # type: ignore
        output = formatter.format(record)
        parsed = json.loads(output)
        assert parsed["cluster_id"] == "redis-001"
        assert parsed["target_groups"] == 4
        assert "region" not in parsed

    def test_includes_exception(self):
        formatter = JSONFormatter()
        try:
            raise ValueError("boom")
        except ValueError:
            exc_info = sys.exc_info()
        record = logging.LogRecord(
            name="test", level=logging.ERROR, pathname="", lineno=0,
            msg="failed", args=(), exc_info=exc_info,
        )
        parsed = json.loads(formatter.format(record))
        assert "ValueError: boom" in parsed["exception"]


class TestConfigureLogging:
    def test_json_format(self):
        configure_logging(LoggingConfig(level="DEBUG", format="json"))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(isinstance(h.formatter, JSONFormatter) for h in root.handlers)

    def test_text_format(self):
        configure_logging(LoggingConfig(level="WARNING", format="text"))
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert any(isinstance(h.formatter, TextFormatter) for h in root.handlers)

    def test_replaces_existing_handlers(self):
        configure_logging(LoggingConfig())
        configure_logging(LoggingConfig())
        assert len(logging.getLogger().handlers) == 1

    def test_suppresses_noisy_loggers(self):
        configure_logging(LoggingConfig())
        assert logging.getLogger("botocore").level >= logging.WARNING
        assert logging.getLogger("boto3").level >= logging.WARNING
        assert logging.getLogger("urllib3").level >= logging.WARNING


class TestTextFormatter:
    def _record(self, **extras):
        record = logging.LogRecord(
            name="elasticache_sd.discovery.service", level=logging.INFO, pathname="", lineno=0,
            msg="Published snapshot", args=(), exc_info=None,
        )
        for key, value in extras.items():
            setattr(record, key, value)
        return record

    def test_appends_extras_as_key_value(self):
        output = TextFormatter().format(self._record(target_groups=4, elapsed_seconds=0.31))
        assert output.endswith("Published snapshot target_groups=4 elapsed_seconds=0.31")

    def test_plain_line_without_extras(self):
        output = TextFormatter().format(self._record())
        assert output.endswith("[elasticache_sd.discovery.service] Published snapshot")

    def test_ignores_unlisted_attributes(self):
        output = TextFormatter(fields=("cluster_id",)).format(self._record(target_groups=4))
        assert "target_groups" not in output


class TestJSONFormatterThread:
    def test_background_thread_name_included(self):
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="tick", args=(), exc_info=None,
        )
        record.threadName = "elasticache-discovery"
        assert json.loads(JSONFormatter().format(record))["thread"] == "elasticache-discovery"

    def test_main_thread_omitted(self):
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="tick", args=(), exc_info=None,
        )
        record.threadName = "MainThread"
        assert "thread" not in json.loads(JSONFormatter().format(record))

    def test_configure_returns_installed_handler(self):
        handler = configure_logging(LoggingConfig(level="info"))
        assert logging.getLogger().handlers == [handler]
        assert logging.getLogger().level == logging.INFO
