"""Logging configuration for Grocery Board.

Logs go to stderr so that ``--json`` output on stdout stays parseable.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any

# List being worked on, added to every record while set
list_id_ctx: ContextVar[str | None] = ContextVar("list_id", default=None)


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if list_id := list_id_ctx.get():
            log_data["list_id"] = list_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


class ContextualFormatter(logging.Formatter):
    """Human-readable formatter with the current list."""

    def format(self, record: logging.LogRecord) -> str:
        list_id = list_id_ctx.get()
        context_str = f" [list={list_id}]" if list_id else ""

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname.ljust(8)
        formatted = f"{timestamp} | {level} | {record.name}{context_str} | {record.getMessage()}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def configure_logging(log_level: str = "WARNING", json_format: bool = False) -> None:
    """Configure the package logger.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON lines instead of text
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)
    formatter = JsonFormatter() if json_format else ContextualFormatter()

    package_logger = logging.getLogger("grocery_board")
    package_logger.setLevel(level)

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    package_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    fmt = "json" if json_format else "text"
    package_logger.debug(f"Logging configured: level={log_level.upper()}, format={fmt}")


class LoggingContext:
    """Context manager that tags log records with a list id."""

    def __init__(self, list_id: str | None = None):
        self.list_id = list_id
        self._token = None

    def __enter__(self) -> "LoggingContext":
        if self.list_id is not None:
            self._token = list_id_ctx.set(self.list_id)
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            list_id_ctx.reset(self._token)
            self._token = None
