"""Operation timing helpers for platform calls.

USAGE:
    from iostack.infrastructure.observability.logger_template import log_operation

    async with log_operation(logger, "establish_session", use_case="..."):
        await api.establish_session(...)
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


# Yo, this wraps every platform call so you get started/completed/failed lines with duration_ms
# for free. Failures are logged WITHOUT a traceback here - the error already went to the error
# handlers and is re-raised, so whoever catches it decides whether a traceback is worth printing.
# Default level is DEBUG because a chatty conversation makes several calls per message.
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    log_level: int = logging.DEBUG,
    **context: Any,
) -> AsyncIterator[None]:
    """Context manager for logging operation start/end with automatic timing.

    Logs:
    - {operation}.started with context fields
    - {operation}.completed with context + duration_ms
    - {operation}.failed with context + duration_ms + error details (then re-raises)

    Args:
        logger: Module logger
        operation: Operation name (e.g., "establish_session", "stream_message")
        log_level: Level for started/completed lines (failed is always WARNING)
        **context: Extra fields for every line (never put tokens here!)
    """
    start = time.monotonic()
    logger.log(log_level, f"{operation}.started", extra=context)

    try:
        yield
    except BaseException as e:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.warning(
            f"{operation}.failed",
            extra={
                **context,
                "duration_ms": duration_ms,
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        raise

    duration_ms = int((time.monotonic() - start) * 1000)
    logger.log(
        log_level,
        f"{operation}.completed",
        extra={**context, "duration_ms": duration_ms},
    )
