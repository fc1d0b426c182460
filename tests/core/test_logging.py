"""Tests for structured logging."""

import json
import logging
import sys

from studybuilder.core.logging import (
    JSONFormatter,
    LogContext,
    TextFormatter,
    configure_logging,
    get_logger,
)


def _record(msg="Test message", level=logging.INFO, name="test", exc_info=None):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_format_basic_message(self):
        """Basic message is formatted as JSON."""
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data

    def test_format_includes_location(self):
        """JSON includes file location."""
        record = _record(level=logging.ERROR)
        record.funcName = "instantiate"

        data = json.loads(JSONFormatter().format(record))

        assert data["location"] == {"file": "test.py", "line": 10, "function": "instantiate"}

    def test_format_with_exception(self):
        """JSON includes exception info."""
        try:
            raise ValueError("Autosave failed")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(_record(level=logging.ERROR, exc_info=exc_info)))

        assert "ValueError" in data["exception"]

    def test_format_with_extra_fields(self):
        """Extra fields land at the top level."""
        record = _record()
        record.draft_key = "draft-42"

        data = json.loads(JSONFormatter().format(record))

        assert data["draft_key"] == "draft-42"

    def test_format_includes_log_context(self):
        """Fields from an active LogContext are included."""
        with LogContext(request_id="req-1", template_id="customer-satisfaction"):
            data = json.loads(JSONFormatter().format(_record()))

        assert data["request_id"] == "req-1"
        assert data["template_id"] == "customer-satisfaction"


class TestTextFormatter:
    """Tests for text formatter."""

    def test_format_readable(self):
        """Text format is human-readable."""
        output = TextFormatter().format(_record(msg="Hello world", name="studybuilder.session"))

        assert "INFO" in output
        assert "studybuilder.session" in output
        assert "Hello world" in output

    def test_format_appends_context(self):
        """Context fields are appended as key=value pairs."""
        with LogContext(request_id="req-7"):
            output = TextFormatter().format(_record())

        assert output.endswith("| request_id=req-7")


class TestLogContext:
    """Tests for LogContext."""

    def test_context_is_cleared_on_exit(self):
        with LogContext(draft_key="d1"):
            assert LogContext.current() == {"draft_key": "d1"}

        assert "draft_key" not in LogContext.current()

    def test_nested_context_restores_outer_value(self):
        with LogContext(draft_key="outer"):
            with LogContext(draft_key="inner"):
                assert LogContext.current()["draft_key"] == "inner"
            assert LogContext.current()["draft_key"] == "outer"


class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_json_format(self):
        """JSON format installs a JSONFormatter handler."""
        configure_logging(level="DEBUG", format_type="json")

        installed = [h for h in logging.getLogger().handlers if getattr(h, "_studybuilder", False)]
        assert len(installed) == 1
        assert isinstance(installed[0].formatter, JSONFormatter)

    def test_reconfigure_replaces_own_handler(self):
        """Calling configure twice does not stack handlers."""
        configure_logging(level="INFO", format_type="json")
        configure_logging(level="INFO", format_type="text")

        installed = [h for h in logging.getLogger().handlers if getattr(h, "_studybuilder", False)]
        assert len(installed) == 1
        assert isinstance(installed[0].formatter, TextFormatter)

    def test_configure_level(self):
        """Log level is respected."""
        configure_logging(level="ERROR", format_type="text")

        assert logging.getLogger().level == logging.ERROR


class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_named_logger(self):
        logger = get_logger("studybuilder.domain")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "studybuilder.domain"
        assert get_logger("studybuilder.domain") is logger
