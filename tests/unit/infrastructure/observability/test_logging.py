"""Tests for structured logging."""

import json
import logging

from iostack.infrastructure.observability.logging import (
    CompactExceptionFormatter,
    CustomJsonFormatter,
    SessionIdFilter,
    bind_session_id,
    configure_logging,
    get_session_id,
)


class TestSessionId:
    """Test session id context binding."""

    def test_bind_and_get_session_id(self):
        """Test binding and reading the session id."""
        result = bind_session_id("S1")
        assert result == "S1"
        assert get_session_id() == "S1"

    def test_bind_none_clears(self):
        """Test that binding None clears the session id."""
        bind_session_id("S1")
        assert bind_session_id(None) == ""
        assert get_session_id() == ""

    def test_filter_adds_session_id(self):
        """Test that every record gets the bound session id."""
        bind_session_id("S42")
        record = logging.LogRecord("iostack", logging.INFO, __file__, 1, "msg", None, None)

        assert SessionIdFilter().filter(record) is True
        assert record.session_id == "S42"
        bind_session_id(None)


class TestFormatters:
    """Test log formatters."""

    def test_json_formatter_includes_session_id(self):
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        record = logging.LogRecord(
            "iostack.client", logging.WARNING, __file__, 10, "stream failed", None, None
        )
        record.session_id = "S1"

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "stream failed"
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "iostack.client"
        assert payload["session_id"] == "S1"

    def test_compact_formatter_shows_cause_chain(self):
        """Test that wrapped exceptions print root cause first."""
        try:
            try:
                raise ConnectionError("refused")
            except ConnectionError as e:
                raise RuntimeError("request failed") from e
        except RuntimeError as e:
            exc_info = (type(e), e, e.__traceback__)

        text = CompactExceptionFormatter().formatException(exc_info)
        lines = [line for line in text.splitlines() if line.startswith("╰─►")]

        assert lines == [
            "╰─► ConnectionError: refused",
            "╰─► RuntimeError: request failed",
        ]


class TestLoggingConfiguration:
    """Test logging configuration."""

    def test_configure_logging_debug_level(self):
        """Test configuring logging with DEBUG level."""
        configure_logging(log_level="DEBUG", json_format=False, app_name="test-app")
        logger = logging.getLogger("test")
        assert logger.getEffectiveLevel() <= logging.DEBUG

    def test_configure_logging_info_level(self):
        """Test configuring logging with INFO level."""
        configure_logging(log_level="INFO", json_format=False, app_name="test-app")
        logger = logging.getLogger("test")
        assert logger.getEffectiveLevel() == logging.INFO

    def test_configure_logging_json_format(self):
        """Test configuring logging with JSON format."""
        configure_logging(log_level="INFO", json_format=True, app_name="test-app")
        root_logger = logging.getLogger()
        assert any(isinstance(h.formatter, CustomJsonFormatter) for h in root_logger.handlers)

    def test_configure_logging_quiets_http_libraries(self):
        """Test that httpx never logs request headers (bearer tokens) at DEBUG."""
        configure_logging(log_level="DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
