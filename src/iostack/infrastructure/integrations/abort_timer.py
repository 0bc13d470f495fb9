"""Cancellable deadline for platform calls.

Hey future me - every network call runs inside a FRESH AbortTimer:

    async with AbortTimer(30.0, operation="retrieve access token"):
        response = await client.post(...)

If the deadline passes, the call is cancelled wherever it is suspended (connect, headers,
mid-stream read) and RequestTimeoutError comes out of the `async with`. Leaving the block
any other way - success, HTTP error, exception - runs reset(), so a finished call can never
be cancelled later. It is asyncio.timeout() underneath; don't replace it with
loop.call_later + task.cancel(), asyncio.timeout already handles the cancel-vs-exit races.
"""

import asyncio
from types import TracebackType

from iostack.domain.exceptions import RequestTimeoutError


class AbortTimer:
    """One-shot cancellation deadline bound to the enclosing task."""

    def __init__(self, timeout: float, operation: str = "request") -> None:
        """
        Args:
            timeout: Seconds until the enclosed call is cancelled
            operation: Human-readable name used in the timeout error message
        """
        self.timeout = timeout
        self.operation = operation
        self._scope: asyncio.Timeout | None = None
        self._disarmed = False

    async def __aenter__(self) -> "AbortTimer":
        self._scope = asyncio.timeout(self.timeout)
        await self._scope.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        self.reset()
        if self._scope is None:
            return None
        try:
            return await self._scope.__aexit__(exc_type, exc, tb)
        except TimeoutError as e:
            raise RequestTimeoutError(
                f"{self.operation} timed out after {self.timeout:g}s",
                timeout=self.timeout,
            ) from e

    @property
    def fired(self) -> bool:
        """True once the deadline has elapsed and cancelled the call."""
        return self._scope is not None and self._scope.expired()

    def reset(self) -> None:
        """Disarm the deadline. No effect if it already fired or was reset."""
        if self._scope is None or self._disarmed or self._scope.expired():
            return
        self._scope.reschedule(None)
        self._disarmed = True
