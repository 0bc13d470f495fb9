"""HTTP calls to the IOStack platform.

Hey future me - this is the ONLY module that talks HTTP. Every call:
- runs inside a fresh AbortTimer (30s for session/token/metadata, 60s for streaming)
- sends Content-Type: application/json + Authorization: Bearer <token>
- treats any non-2xx as an error: reported via ErrorReporter.report_error(), then raised
- wraps httpx transport errors in PlatformRequestError (cause kept via `from`)
- is attempted exactly ONCE. No retries, on purpose - the caller decides.

Which bearer goes where is the caller's business (TokenLifecycleManager / IOStackClient).
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, cast

import httpx

from iostack.domain.exceptions import PlatformRequestError, RequestTimeoutError
from iostack.infrastructure.integrations.abort_timer import AbortTimer
from iostack.infrastructure.integrations.error_reporter import ErrorReporter
from iostack.infrastructure.observability.log_messages import LogMessages
from iostack.infrastructure.observability.logger_template import log_operation

logger = logging.getLogger(__name__)


class PlatformApi:
    """Thin async wrapper around the five platform endpoints."""

    def __init__(
        self,
        platform_root: str,
        reporter: ErrorReporter,
        request_timeout: float = 30.0,
        stream_timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            platform_root: Base URL, e.g. https://platform.iostack.ai
            reporter: Where failures get reported before they are raised
            request_timeout: Deadline for session/token/metadata calls (seconds)
            stream_timeout: Deadline for a whole message stream (seconds)
            http_client: Optional shared client. If given, close() leaves it open.
        """
        self.platform_root = platform_root.rstrip("/")
        self.request_timeout = request_timeout
        self.stream_timeout = stream_timeout
        self._reporter = reporter
        self._client = http_client
        self._owns_client = http_client is None

    # Deadlines come from AbortTimer, so httpx's own timeouts are switched off. Otherwise
    # httpx's 5s read timeout would kill slow LLM streams long before our 60s deadline.
    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(None))
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _headers(bearer: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {bearer}",
        }

    # =========================================================================
    # ERROR PLUMBING
    # =========================================================================

    async def _raise_for_response(self, response: httpx.Response, operation: str) -> None:
        """Report a non-2xx response and raise it as PlatformRequestError."""
        error_text = await self._reporter.report_error(response)
        logger.warning(
            LogMessages.request_failed(operation, error_text, status_code=response.status_code)
        )
        error = PlatformRequestError(error_text, status_code=response.status_code)
        error.reported = True
        raise error

    @asynccontextmanager
    async def _guarded(
        self, operation: str, error_title: str, timeout: float
    ) -> AsyncIterator[None]:
        """Run one platform call under a deadline with uniform error reporting.

        Args:
            operation: Short name for logs and timeout messages ("establish session")
            error_title: Title used when the failure is reported ("Error while ...")
            timeout: Deadline in seconds
        """
        try:
            async with log_operation(logger, operation.replace(" ", "_")):
                async with AbortTimer(timeout, operation=operation):
                    yield
        except RequestTimeoutError as e:
            logger.warning(LogMessages.request_timeout(operation, timeout))
            await self._reporter.report_exception(error_title, e)
            raise
        except httpx.HTTPError as e:
            error = PlatformRequestError(f"{operation} failed: {str(e) or type(e).__name__}")
            logger.warning(LogMessages.request_failed(operation, error.message))
            await self._reporter.report_exception(error_title, error)
            raise error from e
        except Exception as e:
            await self._reporter.report_exception(error_title, e)
            raise

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        bearer: str,
        operation: str,
        error_title: str,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        client = await self._get_client()
        async with self._guarded(operation, error_title, self.request_timeout):
            response = await client.request(
                method,
                f"{self.platform_root}{path}",
                headers=self._headers(bearer),
                json=json_body,
                params=params,
            )
            if not response.is_success:
                await self._raise_for_response(response, operation)
            try:
                body = response.json()
            except ValueError as e:
                raise PlatformRequestError(
                    f"{operation} returned invalid JSON: {e}", status_code=response.status_code
                ) from e
            if not isinstance(body, dict):
                raise PlatformRequestError(
                    f"{operation} returned {type(body).__name__}, expected an object",
                    status_code=response.status_code,
                )
            return cast(dict[str, Any], body)

    # =========================================================================
    # SESSION & CREDENTIALS
    # =========================================================================

    async def establish_session(
        self,
        access_key: str,
        use_case_data: dict[str, Any] | None,
        user_id: str | None,
    ) -> dict[str, Any]:
        """
        Create a new session for the use case identified by the access key.

        Returns:
            {"session_id": ..., "refresh_token": ...}
        """
        return await self._request_json(
            "POST",
            "/v1/use_case/session",
            bearer=access_key,
            operation="establish session",
            error_title="Error while establishing session",
            json_body={
                "use_case_id": access_key,
                "client_data": use_case_data,
                "user_id": user_id,
            },
        )

    async def fetch_access_token(
        self,
        session_id: str,
        refresh_token: str,
        error_title: str = "Error while retrieving access token",
    ) -> dict[str, Any]:
        """
        Mint a new access token from the refresh token.

        Returns:
            {"access_token": ...}
        """
        return await self._request_json(
            "POST",
            f"/v1/use_case/session/{session_id}/access_token",
            bearer=refresh_token,
            operation="retrieve access token",
            error_title=error_title,
            json_body={},
        )

    async def fetch_refresh_token(
        self,
        session_id: str,
        access_key: str,
        use_case_data: dict[str, Any] | None,
    ) -> dict[str, Any]:
        """
        Renew the session's refresh token using the access key.

        Returns:
            {"refresh_token": ...}
        """
        return await self._request_json(
            "POST",
            f"/v1/use_case/session/{session_id}/refresh_token",
            bearer=access_key,
            operation="refresh refresh token",
            error_title="Error while refreshing session refresh token",
            json_body={
                "use_case_id": access_key,
                "client_data": use_case_data,
            },
        )

    async def fetch_use_case_metadata(
        self, access_token: str, details: list[str]
    ) -> dict[str, Any]:
        """
        Fetch use-case metadata (GET /v1/use_case/meta?details=a&details=b).

        Returns:
            {"use_case": {...}}
        """
        return await self._request_json(
            "GET",
            "/v1/use_case/meta",
            bearer=access_token,
            operation="retrieve use case metadata",
            error_title="Error while retrieving use case metadata",
            params={"details": details} if details else None,
        )

    # =========================================================================
    # STREAMING
    # =========================================================================

    # Hey future me - the 60s deadline covers the WHOLE drain, not just the response headers.
    # on_text runs inside the deadline too, so slow handlers eat into it. Chunks arrive
    # already decoded (aiter_text uses an incremental decoder), so a multi-byte character
    # split across two network chunks is never torn apart.
    async def stream_message(
        self,
        session_id: str,
        access_token: str,
        message: str,
        on_text: Callable[[str], Awaitable[None]],
    ) -> None:
        """
        Post a message and feed the streamed reply, chunk by chunk, to on_text.

        Returns once the server closes the stream.
        """
        client = await self._get_client()
        async with self._guarded(
            "stream message", "Error while streaming response", self.stream_timeout
        ):
            async with client.stream(
                "POST",
                f"{self.platform_root}/v1/use_case/session/{session_id}/stream",
                headers=self._headers(access_token),
                json={"message": message},
            ) as response:
                if not response.is_success:
                    await response.aread()
                    await self._raise_for_response(response, "stream message")
                async for text in response.aiter_text():
                    await on_text(text)
