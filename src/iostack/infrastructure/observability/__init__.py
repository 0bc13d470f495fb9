"""Observability infrastructure for structured logging."""

from iostack.infrastructure.observability.log_messages import LogMessages, LogTemplate
from iostack.infrastructure.observability.logger_template import log_operation
from iostack.infrastructure.observability.logging import (
    bind_session_id,
    configure_logging,
    get_session_id,
)

__all__ = [
    "LogMessages",
    "LogTemplate",
    "bind_session_id",
    "configure_logging",
    "get_session_id",
    "log_operation",
]
