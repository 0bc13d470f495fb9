"""IOStack platform integration: HTTP calls, credentials, stream decoding."""

from iostack.infrastructure.integrations.abort_timer import AbortTimer
from iostack.infrastructure.integrations.credentials import CredentialStore
from iostack.infrastructure.integrations.error_reporter import ErrorReporter
from iostack.infrastructure.integrations.handler_registry import (
    HandlerRegistry,
    invoke_handlers,
)
from iostack.infrastructure.integrations.platform_api import PlatformApi
from iostack.infrastructure.integrations.stream_decoder import StreamProtocolDecoder
from iostack.infrastructure.integrations.token_manager import (
    TokenLifecycleManager,
    compute_refresh_time,
)

__all__ = [
    "AbortTimer",
    "CredentialStore",
    "ErrorReporter",
    "HandlerRegistry",
    "PlatformApi",
    "StreamProtocolDecoder",
    "TokenLifecycleManager",
    "compute_refresh_time",
    "invoke_handlers",
]
