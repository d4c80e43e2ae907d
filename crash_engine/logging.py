"""
Logging configuration for the crash engine.

Provides consistent logging format across all modules with:
- JSON structured output for log shippers
- Human-readable output for development
- Request ID tracking so a failure can be matched to its request
- An in-memory ring buffer served by the diagnostics routes
"""

import json
import logging
import sys
from collections import deque
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Context variable for tracking request IDs across async and threadpool calls
current_request_id: ContextVar[str | None] = ContextVar("current_request_id", default=None)


class CrashFormatter(logging.Formatter):
    """
    Custom formatter for crash engine logs.

    Includes timestamp, level, module, request_id (if set), and message.
    With json_output each record becomes one JSON object per line, with any
    traceback under "exception".
    """

    def __init__(self, fmt: str | None = None, json_output: bool = False):
        super().__init__(fmt)
        self.json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        # Add timestamp in ISO format
        record.timestamp = datetime.now(UTC).isoformat()

        request_id = current_request_id.get()
        record.request_id = f"[{request_id}] " if request_id else ""

        if not self.json_output:
            return super().format(record)

        entry: dict[str, Any] = {
            "timestamp": record.timestamp,
            "level": record.levelname,
            "module": record.name,
            "request_id": request_id,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class InMemoryHandler(logging.Handler):
    """In-memory log handler for the diagnostics routes."""

    def __init__(self, capacity: int = 1000):
        super().__init__()
        self.logs: deque[dict[str, Any]] = deque(maxlen=capacity)

    def resize(self, capacity: int) -> None:
        """Change the buffer capacity, keeping the newest records."""
        self.logs = deque(self.logs, maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            log_entry = {
                "timestamp": getattr(record, "timestamp", datetime.now(UTC).isoformat()),
                "level": record.levelname,
                "level_no": record.levelno,
                "logger": record.name,
                "message": record.getMessage(),
                "request_id": current_request_id.get(),
                "exception": (
                    type(record.exc_info[1]).__name__
                    if record.exc_info and record.exc_info[1] is not None
                    else None
                ),
            }
            self.logs.append(log_entry)
        except Exception:
            self.handleError(record)


_in_memory_handler = InMemoryHandler()


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    buffer_size: int | None = None,
) -> logging.Logger:
    """
    Configure logging for the crash engine.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON format
        buffer_size: Capacity of the in-memory diagnostics buffer

    Returns:
        Configured root logger
    """
    # Clear any existing handlers
    root = logging.getLogger()
    root.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    fmt = "%(timestamp)s | %(levelname)-8s | %(name)s | %(request_id)s%(message)s"
    formatter = CrashFormatter(fmt, json_output=json_output)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    if buffer_size is not None:
        _in_memory_handler.resize(buffer_size)
    _in_memory_handler.setLevel(numeric_level)
    _in_memory_handler.setFormatter(formatter)
    root.addHandler(_in_memory_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_in_memory_logs(level: str = "INFO", limit: int = 50) -> list[dict[str, Any]]:
    """Get filtered logs from memory."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    filtered = [log for log in _in_memory_handler.logs if log["level_no"] >= numeric_level]
    return filtered[-limit:]


def clear_in_memory_logs() -> None:
    """Drop all buffered log records."""
    _in_memory_handler.logs.clear()


def set_request_id(request_id: str) -> None:
    """Set the current request ID for log correlation."""
    current_request_id.set(request_id)


def clear_request_id() -> None:
    """Clear the current request ID."""
    current_request_id.set(None)
