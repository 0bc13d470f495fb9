"""Structured logging configuration with JSON formatting and session-id tagging."""

import contextvars
import logging
import sys
import traceback
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

# Hey future me, the session id follows every log line so you can grep one conversation out
# of a busy process. contextvars (not a global!) because each asyncio task gets its own copy:
# the client binds the id inside the caller's task and everything awaited from there inherits
# it. The default "" covers logs written before any session exists (startup, establishment).
session_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("session_id", default="")


def get_session_id() -> str:
    """Get the session id bound to the current context ("" if none)."""
    return session_id_var.get()


def bind_session_id(session_id: str | None) -> str:
    """Bind a session id to the current context.

    Args:
        session_id: Session id to bind. None clears the binding.

    Returns:
        The value that was bound
    """
    value = session_id or ""
    session_id_var.set(value)
    return value


class SessionIdFilter(logging.Filter):
    """Add session_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = get_session_id()
        return True


class CompactExceptionFormatter(logging.Formatter):
    """Formatter that shows compact exception chains without traceback boilerplate.

    Hey future me - the client wraps httpx errors with `raise ... from exc`, so a single
    failed call easily produces two or three chained tracebacks joined by "The above
    exception was the direct cause...". This prints the chain root-cause first, one
    `╰─►` line per exception, and only frames from our own package:

    ERROR │ iostack.infrastructure.integrations.platform_api:120 │ ...
    ╰─► ConnectError: All connection attempts failed
    ╰─► PlatformRequestError: All connection attempts failed
        File "platform_api.py", line 131, in _request_json
          raise PlatformRequestError(str(exc)) from exc
    """

    def formatException(self, ei: tuple[type, BaseException, Any]) -> str:  # noqa: N802
        _, exc_value, _ = ei
        if exc_value is None:
            return ""

        exceptions: list[BaseException] = []
        current: BaseException | None = exc_value
        while current is not None and current not in exceptions:
            exceptions.append(current)
            current = current.__cause__ or current.__context__
        exceptions.reverse()

        lines: list[str] = []
        for exc in exceptions:
            lines.append(f"╰─► {exc.__class__.__name__}: {exc}")
            if exc.__traceback__ is None:
                continue
            for frame in traceback.extract_tb(exc.__traceback__):
                if "/site-packages/" in frame.filename or "iostack" not in frame.filename:
                    continue
                lines.append(
                    f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}'
                )
                if frame.line:
                    lines.append(f"      {frame.line.strip()}")

        return "\n".join(lines)


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined,misc]
    """Custom JSON formatter with additional fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        session_id = getattr(record, "session_id", "")
        if session_id:
            log_record["session_id"] = session_id

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)


# Listen future me, call this ONCE at startup (the harness does). A library must not configure
# logging on import, so IOStackClient itself never calls it - embedders wire their own handlers.
# The httpx/httpcore quieting matters: at DEBUG they log every header of every request, and the
# Authorization header is a bearer token.
def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "iostack",
) -> None:
    """Configure structured logging on the root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format for logs (recommended when shipping logs)
        app_name: Application name to include in logs
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(SessionIdFilter())

    if json_format:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = CompactExceptionFormatter(
            fmt="%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s",
            datefmt="%H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={
            "app_name": app_name,
            "log_level": log_level,
            "json_format": json_format,
        },
    )
