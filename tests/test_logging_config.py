"""
Tests for structured JSON logging configuration.

Tests logging_config.py module functionality.
"""

import json
import logging
import sys

import pytest

from workspace_functions.logging_config import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test_logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=42,
        msg="Test message",
        args=(),
        exc_info=None,
    )
    record.module = "test_module"
    record.funcName = "test_function"
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    """setup_logging replaces the root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:
    """Test JSONFormatter class."""

    def test_basic_log_formatting(self):
        """Test that basic log record is formatted as JSON."""
        log_data = json.loads(JSONFormatter().format(_record()))

        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "test_logger"
        assert log_data["message"] == "Test message"
        assert log_data["module"] == "test_module"
        assert log_data["function"] == "test_function"
        assert log_data["line"] == 42
        assert log_data["timestamp"].endswith("Z")

    def test_dispatch_fields_included(self):
        """request_id and function_name extras should be copied."""
        log_data = json.loads(
            JSONFormatter().format(_record(request_id="req_1", function_name="helloworld"))
        )

        assert log_data["request_id"] == "req_1"
        assert log_data["function_name"] == "helloworld"

    def test_absent_fields_omitted(self):
        log_data = json.loads(JSONFormatter().format(_record()))

        assert "request_id" not in log_data
        assert "exception" not in log_data

    def test_log_with_exception(self):
        """Test that exception info is included."""
        try:
            raise ValueError("Test error")
        except ValueError:
            exc_info = sys.exc_info()

        record = _record()
        record.exc_info = exc_info

        log_data = json.loads(JSONFormatter().format(record))

        assert "ValueError" in log_data["exception"]
        assert "Test error" in log_data["exception"]


class TestSetupLogging:
    """Test setup_logging function."""

    def test_setup_logging_default(self, restore_root_logger):
        """Test that setup_logging configures root logger."""
        setup_logging(level="INFO")

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)

    def test_setup_logging_custom_level(self, restore_root_logger):
        setup_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_noisy_libraries_silenced(self, restore_root_logger):
        setup_logging(level="INFO")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_logging_produces_json(self, capsys, restore_root_logger):
        """Test that actual logging produces JSON output."""
        setup_logging(level="INFO")

        logging.getLogger("test_logger").info(
            "Dispatching", extra={"request_id": "req-123"}
        )

        lines = capsys.readouterr().out.strip().split("\n")
        log_data = json.loads(lines[-1])

        assert log_data["message"] == "Dispatching"
        assert log_data["request_id"] == "req-123"
