"""Credential store for one client session.

Hey future me - this holds the SECRETS (access key, refresh token, access token) plus the
times at which each token must be renewed. Only TokenLifecycleManager writes to it; the
session manager never even gets a reference. Nothing here is ever logged and repr() hides
the secrets, so an accidental `logger.debug(store)` is safe.
"""

from datetime import UTC, datetime

# "Never renewed" - any refresh time at or before now means "expired"
EPOCH = datetime.fromtimestamp(0, tz=UTC)


class CredentialStore:
    """Access key, refresh/access tokens and their renewal times."""

    def __init__(self, access_key: str) -> None:
        self._access_key = access_key
        self._refresh_token = ""
        self._access_token = ""
        self._refresh_token_refresh_time = EPOCH
        self._access_token_refresh_time = EPOCH

    def __repr__(self) -> str:
        return (
            f"CredentialStore(refresh_token_refresh_time={self._refresh_token_refresh_time.isoformat()}, "
            f"access_token_refresh_time={self._access_token_refresh_time.isoformat()})"
        )

    @property
    def access_key(self) -> str:
        return self._access_key

    @property
    def refresh_token(self) -> str:
        return self._refresh_token

    @property
    def access_token(self) -> str:
        return self._access_token

    @property
    def refresh_token_refresh_time(self) -> datetime:
        return self._refresh_token_refresh_time

    @property
    def access_token_refresh_time(self) -> datetime:
        return self._access_token_refresh_time

    def set_refresh_token(self, token: str, refresh_time: datetime) -> None:
        """Store a new refresh token together with its renewal time."""
        self._refresh_token = token
        self._refresh_token_refresh_time = refresh_time

    def set_access_token(self, token: str, refresh_time: datetime) -> None:
        """Store a new access token together with its renewal time."""
        self._access_token = token
        self._access_token_refresh_time = refresh_time

    def refresh_token_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(UTC)) >= self._refresh_token_refresh_time

    def access_token_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(UTC)) >= self._access_token_refresh_time
