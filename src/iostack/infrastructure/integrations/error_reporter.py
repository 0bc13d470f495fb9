"""Funnel for everything that goes to the error handlers."""

import logging
from json import JSONDecodeError

import httpx

from iostack.domain.exceptions import IOStackError
from iostack.infrastructure.integrations.handler_registry import (
    HandlerRegistry,
    invoke_handlers,
)

logger = logging.getLogger(__name__)


class ErrorReporter:
    """Formats errors and hands them to every registered error handler.

    Hey future me - the registry is read at call time (not copied at construction),
    so deregister_all_handlers() on the client silences reporting immediately.
    """

    def __init__(self, registry: HandlerRegistry) -> None:
        self._registry = registry

    async def on_error(self, error: str) -> None:
        """Invoke every error handler with the error text."""
        logger.debug("Reporting error to %d handler(s)", len(self._registry.error))
        await invoke_handlers(self._registry.error, error)

    async def report_error(self, response: httpx.Response) -> str:
        """Report a failed HTTP response.

        The text is "<reason phrase>:<message or detail>" taken from the JSON body. Bodies
        that are not JSON (proxies love HTML error pages) fall back to the raw text.

        Args:
            response: A non-2xx response whose body has been read

        Returns:
            The error text that was reported
        """
        try:
            body = response.json()
        except (JSONDecodeError, UnicodeDecodeError):
            body = None

        if isinstance(body, dict):
            detail = body.get("message") or body.get("detail")
        else:
            detail = response.text or None

        error_text = f"{response.reason_phrase}:{detail}"
        await self.on_error(error_text)
        return error_text

    async def report_error_string(self, error: str, message: str) -> None:
        """Report "<error> - <message>" to the error handlers."""
        await self.on_error(f"{error} - {message}")

    async def report_exception(self, title: str, exc: BaseException) -> None:
        """Report an exception once.

        Skips errors that were already reported further down the stack and errors
        that are never meant to reach the handlers (TokenClaimError).
        """
        if isinstance(exc, IOStackError):
            if exc.reported or not exc.reportable:
                return
            exc.reported = True
        await self.report_error_string(title, str(exc) or type(exc).__name__)
