"""Shared fixtures for IOStack client tests."""

import time
from collections.abc import AsyncIterator, Callable
from datetime import datetime
from typing import Any

import jwt
import pytest

from iostack.config import ClientSettings
from iostack.infrastructure.integrations.credentials import CredentialStore
from iostack.infrastructure.integrations.error_reporter import ErrorReporter
from iostack.infrastructure.integrations.handler_registry import HandlerRegistry
from iostack.infrastructure.integrations.platform_api import PlatformApi

PLATFORM_ROOT = "https://platform.test"

# Long enough that PyJWT doesn't complain about a weak HMAC key
SIGNING_KEY = "unit-test-signing-key-that-is-long-enough-for-hs256"


def make_token(expires_in: float | None = 100, now: datetime | None = None, **claims: Any) -> str:
    """Encode a JWT expiring `expires_in` seconds from now (None: no exp claim)."""
    payload: dict[str, Any] = dict(claims)
    if expires_in is not None:
        issued = now.timestamp() if now else time.time()
        payload["exp"] = int(issued + expires_in)
    return jwt.encode(payload, SIGNING_KEY, algorithm="HS256")


@pytest.fixture
def token_factory() -> Callable[..., str]:
    """Factory for signed test JWTs."""
    return make_token


@pytest.fixture
def errors() -> list[str]:
    """Collects every string passed to the error handler."""
    return []


@pytest.fixture
def registry(errors: list[str]) -> HandlerRegistry:
    """Registry whose only handler records errors."""
    return HandlerRegistry.from_handlers(error_handlers=[errors.append])


@pytest.fixture
def reporter(registry: HandlerRegistry) -> ErrorReporter:
    return ErrorReporter(registry)


@pytest.fixture
def credentials() -> CredentialStore:
    return CredentialStore("K")


@pytest.fixture
async def platform_api(reporter: ErrorReporter) -> AsyncIterator[PlatformApi]:
    """PlatformApi against a fake platform root (requests are served by httpx_mock)."""
    api = PlatformApi(PLATFORM_ROOT, reporter, request_timeout=5.0, stream_timeout=5.0)
    yield api
    await api.close()


@pytest.fixture
def client_settings() -> ClientSettings:
    """Settings that ignore the developer's environment and .env file."""
    return ClientSettings(_env_file=None, platform_root=PLATFORM_ROOT)
