"""Token lifecycle: decides when tokens must be renewed and renews them.

Hey future me - two tokens, each either VALID or EXPIRED:

    expired  <=>  now >= refresh_time

refresh_time is NOT the token's expiry! It is issuance + 70% of the remaining lifetime,
computed from the token's own `exp` claim the moment we receive it. Renewing at 70% leaves
slack for clock skew and for a 60s stream that starts just before expiry.

    access key    --(refresh_token endpoint)-->  refresh token
    refresh token --(access_token endpoint)-->   access token
    access token  --> metadata + message streaming

We decode tokens WITHOUT verifying signatures (PyJWT, verify_signature=False). We only
read `exp` for scheduling; the platform verifies the token when we present it.
"""

import logging
import math
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from iostack.domain.exceptions import PlatformRequestError, TokenClaimError
from iostack.infrastructure.integrations.credentials import CredentialStore
from iostack.infrastructure.integrations.error_reporter import ErrorReporter
from iostack.infrastructure.integrations.platform_api import PlatformApi
from iostack.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)

REFRESH_LIFETIME_RATIO = 0.7

SESSION_NOT_ESTABLISHED = "Session has not yet been established"


def compute_refresh_time(token: str, token_name: str, now: datetime | None = None) -> datetime:
    """Work out when a freshly issued token should be renewed.

    Args:
        token: Encoded JWT
        token_name: "Access Token" / "Refresh Token", for the error message
        now: Issuance instant (defaults to the current time)

    Returns:
        now + floor(70% of (exp - now)), at millisecond resolution

    Raises:
        TokenClaimError: If the token cannot be decoded or has no `exp` claim
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise TokenClaimError(f"{token_name} JWT could not be decoded: {e}") from e

    exp = claims.get("exp")
    if not exp:
        raise TokenClaimError(f"{token_name} JWT missing exp claim")

    try:
        exp_seconds = float(exp)
    except (TypeError, ValueError) as e:
        raise TokenClaimError(f"{token_name} JWT has invalid exp claim") from e

    now = now or datetime.now(UTC)
    remaining_ms = (exp_seconds * 1000) - (now.timestamp() * 1000)
    return now + timedelta(milliseconds=math.floor(remaining_ms * REFRESH_LIFETIME_RATIO))


class TokenLifecycleManager:
    """Owns the CredentialStore and every call that changes it."""

    def __init__(
        self,
        credentials: CredentialStore,
        api: PlatformApi,
        reporter: ErrorReporter,
        use_case_data: dict[str, Any] | None = None,
    ) -> None:
        self._credentials = credentials
        self._api = api
        self._reporter = reporter
        self._use_case_data = use_case_data

    @property
    def access_token(self) -> str:
        """Current access token (read-only)."""
        return self._credentials.access_token

    def refresh_token_expired(self) -> bool:
        return self._credentials.refresh_token_expired()

    def access_token_expired(self) -> bool:
        return self._credentials.access_token_expired()

    # =========================================================================
    # RENEWAL DECISIONS
    # =========================================================================

    # Listen future me, call this before EVERY call that uses the access token. Both checks
    # are independent: step 2 runs even if step 1 did nothing, and uses the refresh token
    # step 1 may have just renewed. When both tokens are fresh this makes zero HTTP calls.
    # Failures were already reported by PlatformApi and propagate to abort the caller.
    async def ensure_fresh(self, session_id: str | None) -> None:
        """Renew whichever tokens are due for renewal."""
        if self.refresh_token_expired():
            await self.refresh_refresh_token(session_id)

        if self.access_token_expired():
            await self.refresh_access_token(session_id)

    # =========================================================================
    # RENEWAL CALLS
    # =========================================================================

    async def establish_session(
        self, use_case_data: dict[str, Any] | None, user_id: str | None
    ) -> str:
        """Create a session with the access key and seed the refresh token.

        Returns:
            The server-issued session id

        Raises:
            PlatformRequestError: If the platform rejects the call or omits fields
            TokenClaimError: If the refresh token has no `exp` claim
        """
        logger.info("Establishing session")
        body = await self._api.establish_session(
            self._credentials.access_key, use_case_data, user_id
        )
        session_id = body.get("session_id")
        refresh_token = body.get("refresh_token")
        if not session_id or not refresh_token:
            error = PlatformRequestError("Session response missing session_id or refresh_token")
            await self._reporter.report_exception("Error while establishing session", error)
            raise error

        self._store_refresh_token(refresh_token)
        return str(session_id)

    async def retrieve_access_token(self, session_id: str | None) -> None:
        """Fetch an access token unconditionally (start of a session).

        A resumed session has never seen a refresh token, so an expired refresh
        token is renewed first.
        """
        if not session_id:
            await self._reporter.report_error_string(
                "Error retrieving access token", SESSION_NOT_ESTABLISHED
            )
            return

        if self.refresh_token_expired():
            await self.refresh_refresh_token(session_id)

        logger.info("Retrieving access token for session %s", session_id)
        body = await self._api.fetch_access_token(session_id, self._credentials.refresh_token)
        await self._store_access_token(body, "Error while retrieving access token")

    async def refresh_access_token(self, session_id: str | None) -> None:
        """Mint a new access token using the refresh token as bearer."""
        if not session_id:
            await self._reporter.report_error_string(
                "Error refreshing access token", SESSION_NOT_ESTABLISHED
            )
            return

        logger.info("Refreshing access token for session %s", session_id)
        body = await self._api.fetch_access_token(
            session_id,
            self._credentials.refresh_token,
            error_title="Error while refreshing access token",
        )
        await self._store_access_token(body, "Error while refreshing access token")

    async def refresh_refresh_token(self, session_id: str | None) -> None:
        """Renew the refresh token using the access key as bearer."""
        if not session_id:
            await self._reporter.report_error_string(
                "Error refreshing refresh token", SESSION_NOT_ESTABLISHED
            )
            return

        logger.info("Refreshing refresh token for session %s", session_id)
        body = await self._api.fetch_refresh_token(
            session_id, self._credentials.access_key, self._use_case_data
        )
        refresh_token = body.get("refresh_token")
        if not refresh_token:
            error = PlatformRequestError("Refresh token response missing refresh_token")
            await self._reporter.report_exception(
                "Error while refreshing session refresh token", error
            )
            raise error
        self._store_refresh_token(refresh_token)

    # =========================================================================
    # STORE UPDATES
    # =========================================================================

    def _store_refresh_token(self, token: str) -> None:
        refresh_time = compute_refresh_time(token, "Refresh Token")
        self._credentials.set_refresh_token(token, refresh_time)
        logger.debug(
            LogMessages.token_renewed(
                "refresh token", (refresh_time - datetime.now(UTC)).total_seconds()
            )
        )

    async def _store_access_token(self, body: dict[str, Any], error_title: str) -> None:
        token = body.get("access_token")
        if not token:
            error = PlatformRequestError("Access token response missing access_token")
            await self._reporter.report_exception(error_title, error)
            raise error

        refresh_time = compute_refresh_time(token, "Access Token")
        self._credentials.set_access_token(token, refresh_time)
        logger.debug(
            LogMessages.token_renewed(
                "access token", (refresh_time - datetime.now(UTC)).total_seconds()
            )
        )
