"""Unit tests for logging infrastructure."""

import json
import logging
import sys

from src.utils.logger import JSONFormatter, RichTextFormatter, get_logger, logger


def _record(msg: str = "Test message", level: int = logging.INFO, name: str = "test_logger", exc_info=None):
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
    """Test JSONFormatter produces valid JSON output."""

    def test_json_formatter_outputs_valid_json(self):
        parsed = json.loads(JSONFormatter().format(_record()))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test_logger"
        assert parsed["message"] == "Test message"
        assert "timestamp" in parsed

    def test_json_formatter_includes_context_fields(self):
        """Provider and request_id extras are copied into the JSON record."""
        record = _record()
        record.provider = "groq"
        record.request_id = "abc123"

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["provider"] == "groq"
        assert parsed["request_id"] == "abc123"
        assert "task_kind" not in parsed

    def test_json_formatter_includes_exception_traceback(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))

        assert "ValueError" in parsed["exception"]


class TestRichTextFormatter:
    """Test RichTextFormatter produces colored text output."""

    def test_includes_level_name_and_message(self):
        output = RichTextFormatter().format(_record("Custom message", logging.WARNING))

        assert "WARNING" in output
        assert "Custom message" in output

    def test_includes_provider_tag(self):
        record = _record("Candidate failed")
        record.provider = "google-gemini"

        assert "[google-gemini]" in RichTextFormatter().format(record)

    def test_no_provider_tag_without_provider(self):
        assert "] plain" not in RichTextFormatter().format(_record("plain"))


class TestGetLogger:
    """Test logger factory."""

    def test_get_logger_does_not_duplicate_handlers(self):
        first = get_logger("nutrition_ai_test_dup")
        second = get_logger("nutrition_ai_test_dup")

        assert first is second
        assert len(second.handlers) == 1

    def test_json_log_type(self, monkeypatch):
        monkeypatch.setenv("LOG_TYPE", "json")

        configured = get_logger("nutrition_ai_test_json")

        assert isinstance(configured.handlers[0].formatter, JSONFormatter)

    def test_log_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        assert get_logger("nutrition_ai_test_level").level == logging.DEBUG

    def test_module_logger_name(self):
        assert logger.name == "nutrition_ai"
