"""Tests for logging setup."""

import json
import logging

from grocery_board.logging_config import (
    ContextualFormatter,
    JsonFormatter,
    LoggingContext,
    configure_logging,
    list_id_ctx,
)


def make_record(message="hello", level=logging.INFO):
    return logging.LogRecord("grocery_board.sync", level, __file__, 1, message, None, None)


class TestFormatters:
    """Tests for the log formatters."""

    def test_json_includes_list_id(self):
        with LoggingContext(list_id="kitchen"):
            line = JsonFormatter().format(make_record())
        data = json.loads(line)
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["list_id"] == "kitchen"

    def test_json_without_context(self):
        data = json.loads(JsonFormatter().format(make_record()))
        assert "list_id" not in data

    def test_contextual_text(self):
        with LoggingContext(list_id="kitchen"):
            line = ContextualFormatter().format(make_record(level=logging.WARNING))
        assert "WARNING" in line
        assert "grocery_board.sync [list=kitchen] | hello" in line


class TestLoggingContext:
    """Tests for LoggingContext."""

    def test_resets_on_exit(self):
        with LoggingContext(list_id="outer"):
            with LoggingContext(list_id="inner"):
                assert list_id_ctx.get() == "inner"
            assert list_id_ctx.get() == "outer"
        assert list_id_ctx.get() is None

    def test_none_leaves_context(self):
        with LoggingContext():
            assert list_id_ctx.get() is None


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_single_handler_and_level(self):
        configure_logging("debug")
        configure_logging("INFO", json_format=True)

        package_logger = logging.getLogger("grocery_board")
        assert package_logger.level == logging.INFO
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0].formatter, JsonFormatter)

    def test_unknown_level_defaults_to_warning(self):
        configure_logging("chatty")
        assert logging.getLogger("grocery_board").level == logging.WARNING
