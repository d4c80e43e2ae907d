"""
Tests for logging setup and the in-memory handler.
"""

import json
import logging
import sys
from collections.abc import Generator

import pytest

from crash_engine.logging import (
    CrashFormatter,
    InMemoryHandler,
    clear_request_id,
    get_in_memory_logs,
    get_logger,
    set_request_id,
    setup_logging,
)


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """Put the default configuration back after the test."""
    yield
    setup_logging(level="INFO", buffer_size=1000)


class TestCrashFormatter:
    """Tests for CrashFormatter."""

    def _record(self) -> logging.LogRecord:
        return logging.LogRecord("crash.test", logging.INFO, __file__, 1, "hello", None, None)

    def test_includes_request_id(self) -> None:
        """Formatted line should carry the current request ID."""
        formatter = CrashFormatter("%(request_id)s%(message)s")
        set_request_id("req-123")
        try:
            assert formatter.format(self._record()) == "[req-123] hello"
        finally:
            clear_request_id()

    def test_without_request_id(self) -> None:
        """No request ID should leave no prefix."""
        formatter = CrashFormatter("%(request_id)s%(message)s")
        assert formatter.format(self._record()) == "hello"

    def test_json_output_escapes_message_and_traceback(self) -> None:
        """JSON lines should stay valid with quotes in the message and a traceback."""
        formatter = CrashFormatter(json_output=True)
        try:
            raise ValueError("For input string: 'a\"b'")
        except ValueError:
            exc_info = sys.exc_info()
        record = logging.LogRecord(
            "crash.test", logging.ERROR, __file__, 1, 'bad value "%s"', ('a"b',), exc_info
        )
        set_request_id("req-9")
        try:
            line = formatter.format(record)
        finally:
            clear_request_id()

        entry = json.loads(line)
        assert "\n" not in line
        assert entry["message"] == 'bad value "a"b"'
        assert entry["level"] == "ERROR"
        assert entry["module"] == "crash.test"
        assert entry["request_id"] == "req-9"
        assert "ValueError" in entry["exception"]
        assert entry["exception"].startswith("Traceback")

    def test_json_output_without_exception(self) -> None:
        """Records without exc_info should have no exception key."""
        entry = json.loads(CrashFormatter(json_output=True).format(self._record()))
        assert entry["message"] == "hello"
        assert entry["request_id"] is None
        assert "exception" not in entry


class TestInMemoryHandler:
    """Tests for InMemoryHandler."""

    def test_capacity(self) -> None:
        """Handler should keep only the newest records."""
        handler = InMemoryHandler(capacity=3)
        logger = logging.getLogger("crash.test.capacity")
        logger.addHandler(handler)
        logger.propagate = False
        try:
            for i in range(5):
                logger.warning("message %d", i)
        finally:
            logger.removeHandler(handler)
        assert [log["message"] for log in handler.logs] == ["message 2", "message 3", "message 4"]

    def test_records_exception_type(self) -> None:
        """Exception info should be reduced to the exception type name."""
        handler = InMemoryHandler()
        logger = logging.getLogger("crash.test.exc")
        logger.addHandler(handler)
        logger.propagate = False
        try:
            try:
                raise IndexError("tuple index out of range")
            except IndexError:
                logger.exception("failed")
        finally:
            logger.removeHandler(handler)
        assert handler.logs[-1]["exception"] == "IndexError"

    def test_resize_keeps_newest(self) -> None:
        """Shrinking should keep the newest records."""
        handler = InMemoryHandler(capacity=5)
        for i in range(5):
            handler.logs.append({"message": str(i)})
        handler.resize(2)
        assert [log["message"] for log in handler.logs] == ["3", "4"]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level_filtering(self, restore_logging: None) -> None:
        """get_in_memory_logs should filter by level."""
        setup_logging(level="DEBUG")
        logger = get_logger("crash.test.filter")
        logger.debug("debug line")
        logger.error("error line")

        errors = get_in_memory_logs(level="ERROR")
        assert [log["message"] for log in errors][-1] == "error line"
        assert all(log["level_no"] >= logging.ERROR for log in errors)

    def test_noisy_loggers_quietened(self, restore_logging: None) -> None:
        """Third-party loggers should be raised to WARNING."""
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_json_output_installed_on_stream_handler(self, restore_logging: None) -> None:
        """setup_logging(json_output=True) should install a JSON formatter."""
        root = setup_logging(level="INFO", json_output=True)
        stream = next(h for h in root.handlers if not isinstance(h, InMemoryHandler))
        assert isinstance(stream.formatter, CrashFormatter)
        assert stream.formatter.json_output is True
