"""IOStack conversational client (session manager).

Hey future me - this is the ONLY class embedders touch. It wires the pieces together:

    IOStackClient
    ├─ TokenLifecycleManager  (owns CredentialStore - we never see the access key again)
    ├─ PlatformApi            (all HTTP, deadlines, non-2xx reporting)
    ├─ StreamProtocolDecoder  (running buffer + packet dispatch)
    └─ ErrorReporter          (error handlers, report-once bookkeeping)

Conversation flow:
1. start_session()  -> establish (or adopt) session, get access token, fetch metadata,
                       send the trigger phrase so the agent speaks first
2. send_message(x)  -> ensure fresh tokens, POST to stream endpoint, decode packets into
                       the registered handlers until the server closes the stream
3. close()          -> release the HTTP client (or use `async with`)

Error policy in one line: business errors reach the error handlers ONCE and are then
raised; "no session yet" only reaches the handlers and returns quietly.

NOT safe for overlapping calls on one instance! The decoder buffer is reset at the start
of each send, so two concurrent send_message() calls corrupt each other's packets.
"""

import logging
from collections.abc import Iterable
from types import TracebackType
from typing import Any

import httpx

from iostack.config import DEFAULT_PLATFORM_ROOT, ClientSettings
from iostack.domain.exceptions import IOStackError, StreamDecodeError
from iostack.domain.ports import (
    ActiveNodeChangeNotificationHandler,
    DebugNotificationHandler,
    ErrorHandler,
    IIOStackClient,
    ReferenceNotificationHandler,
    StreamFragmentHandler,
    UseCaseNotificationHandler,
)
from iostack.infrastructure.integrations.credentials import CredentialStore
from iostack.infrastructure.integrations.error_reporter import ErrorReporter
from iostack.infrastructure.integrations.handler_registry import HandlerRegistry
from iostack.infrastructure.integrations.platform_api import PlatformApi
from iostack.infrastructure.integrations.stream_decoder import StreamProtocolDecoder
from iostack.infrastructure.integrations.token_manager import (
    SESSION_NOT_ESTABLISHED,
    TokenLifecycleManager,
)
from iostack.infrastructure.observability.logging import bind_session_id

logger = logging.getLogger(__name__)

# Sent in place of the trigger phrase when the use case defines none
EMPTY_TRIGGER = "-"


class IOStackClient(IIOStackClient):
    """Client for one conversation with one IOStack use case."""

    def __init__(
        self,
        access_key: str,
        use_case_data: dict[str, Any] | None = None,
        user_id: str | None = None,
        platform_root: str | None = None,
        stream_fragment_handlers: Iterable[StreamFragmentHandler] | None = None,
        error_handlers: Iterable[ErrorHandler] | None = None,
        use_case_notification_handlers: Iterable[UseCaseNotificationHandler] | None = None,
        active_node_change_notification_handlers: Iterable[ActiveNodeChangeNotificationHandler]
        | None = None,
        reference_notification_handlers: Iterable[ReferenceNotificationHandler] | None = None,
        debug_notification_handlers: Iterable[DebugNotificationHandler] | None = None,
        settings: ClientSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client. Makes no network calls.

        Args:
            access_key: Use-case access key (also the use case id)
            use_case_data: Opaque client data sent on session establishment/renewal
            user_id: Optional end-user id sent on session establishment
            platform_root: Base URL (defaults to the production platform)
            stream_fragment_handlers: Receive StreamFragmentPacket for each reply slice
            error_handlers: Receive error strings
            use_case_notification_handlers: Receive generic use-case notifications
            active_node_change_notification_handlers: Receive graph node changes
            reference_notification_handlers: Receive streamed references
            debug_notification_handlers: Receive debug notifications
            settings: Timeouts and metadata details (defaults to ClientSettings())
            http_client: Shared httpx client; left open by close() if given
        """
        settings = settings or ClientSettings()

        self._session_id: str | None = None
        self._user_id = user_id
        self._use_case_data = use_case_data
        self._metadata: dict[str, Any] | None = None
        self._metadata_details = list(settings.metadata_details)

        self._registry = HandlerRegistry.from_handlers(
            stream_fragment_handlers=stream_fragment_handlers,
            error_handlers=error_handlers,
            use_case_notification_handlers=use_case_notification_handlers,
            active_node_change_notification_handlers=active_node_change_notification_handlers,
            reference_notification_handlers=reference_notification_handlers,
            debug_notification_handlers=debug_notification_handlers,
        )
        self._reporter = ErrorReporter(self._registry)
        self._api = PlatformApi(
            platform_root or settings.platform_root or DEFAULT_PLATFORM_ROOT,
            self._reporter,
            request_timeout=settings.request_timeout,
            stream_timeout=settings.stream_timeout,
            http_client=http_client,
        )
        self._tokens = TokenLifecycleManager(
            CredentialStore(access_key),
            self._api,
            self._reporter,
            use_case_data=use_case_data,
        )
        self._decoder = StreamProtocolDecoder(self._registry, self._reporter)

    @classmethod
    def new_client(
        cls,
        access_key: str,
        use_case_data: dict[str, Any] | None = None,
        user_id: str | None = None,
        platform_root: str | None = None,
        stream_fragment_handlers: Iterable[StreamFragmentHandler] | None = None,
        error_handlers: Iterable[ErrorHandler] | None = None,
        use_case_notification_handlers: Iterable[UseCaseNotificationHandler] | None = None,
        active_node_change_notification_handlers: Iterable[ActiveNodeChangeNotificationHandler]
        | None = None,
        reference_notification_handlers: Iterable[ReferenceNotificationHandler] | None = None,
        debug_notification_handlers: Iterable[DebugNotificationHandler] | None = None,
    ) -> "IOStackClient":
        """Construct a client with default settings."""
        return cls(
            access_key=access_key,
            use_case_data=use_case_data,
            user_id=user_id,
            platform_root=platform_root,
            stream_fragment_handlers=stream_fragment_handlers,
            error_handlers=error_handlers,
            use_case_notification_handlers=use_case_notification_handlers,
            active_node_change_notification_handlers=active_node_change_notification_handlers,
            reference_notification_handlers=reference_notification_handlers,
            debug_notification_handlers=debug_notification_handlers,
        )

    # Hey future me - explicit kwargs win over settings. The access key MUST come from one
    # of the two; a client without a key can't even establish a session, so fail loudly here
    # instead of at the first 401.
    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        **kwargs: Any,
    ) -> "IOStackClient":
        """Construct a client from ClientSettings (IOSTACK_* environment variables).

        Args:
            settings: Loaded settings
            **kwargs: Any IOStackClient argument, overriding the settings

        Raises:
            ValueError: If no access key is configured
        """
        access_key = kwargs.pop("access_key", None) or settings.get_access_key()
        if not access_key:
            raise ValueError("No access key configured (set IOSTACK_ACCESS_KEY)")

        kwargs.setdefault("use_case_data", settings.use_case_data)
        kwargs.setdefault("user_id", settings.user_id)
        kwargs.setdefault("platform_root", settings.platform_root)
        return cls(access_key=access_key, settings=settings, **kwargs)

    # =========================================================================
    # SESSION STATE
    # =========================================================================

    def get_session_id(self) -> str | None:
        return self._session_id

    def set_session_details(self, session_id: str, user_id: str | None) -> None:
        """Adopt an externally created session. No network call."""
        self._session_id = session_id
        self._user_id = user_id
        bind_session_id(session_id)

    def deregister_all_handlers(self) -> None:
        self._registry.clear()

    @property
    def metadata(self) -> dict[str, Any] | None:
        return self._metadata

    @property
    def user_id(self) -> str | None:
        return self._user_id

    # =========================================================================
    # CONVERSATION
    # =========================================================================

    # Listen future me, start_session is NOT idempotent! A second call establishes a brand
    # new session (or re-adopts the given one), fetches metadata again and re-sends the
    # trigger phrase. We only warn - resuming a different session on the same client is legit.
    async def start_session(self, session_id: str | None = None) -> None:
        """Establish (or resume) a session and trigger the agent's first response.

        Args:
            session_id: Existing session to resume. None creates a new session.

        Raises:
            IOStackError: If any platform call fails (already reported to error handlers)
        """
        if self._session_id:
            logger.warning(
                "start_session called while session %s is active; starting over",
                self._session_id,
            )

        if session_id:
            logger.info("Resuming session %s", session_id)
            self._session_id = session_id
        else:
            self._session_id = await self._tokens.establish_session(
                self._use_case_data, self._user_id
            )
            logger.info("Established session %s", self._session_id)
        bind_session_id(self._session_id)

        await self._tokens.retrieve_access_token(self._session_id)

        if self._metadata_details:
            await self._retrieve_use_case_metadata()

        trigger = (self._metadata or {}).get("trigger_phrase") or EMPTY_TRIGGER
        logger.info("Sending initial trigger phrase: %s", trigger)
        await self.send_message(trigger)

    async def send_message(self, message: str) -> None:
        """Send a user message and stream the reply into the registered handlers.

        Args:
            message: User text. Empty text is ignored.

        Raises:
            IOStackError: If the send or the decoding fails (already reported)
        """
        if not message:
            return

        if not self._session_id:
            await self._reporter.report_error_string(
                "Error sending message", SESSION_NOT_ESTABLISHED
            )
            return

        await self._tokens.ensure_fresh(self._session_id)

        self._decoder.reset()
        await self._api.stream_message(
            self._session_id,
            self._tokens.access_token,
            message,
            self._on_stream_text,
        )
        self._decoder.finish()

    async def _on_stream_text(self, text: str) -> None:
        """Feed one streamed chunk to the decoder, reporting decode failures once."""
        try:
            await self._decoder.feed(text)
        except IOStackError as e:
            await self._reporter.report_exception("Error while decoding streaming response", e)
            raise
        except Exception as e:
            # A handler blew up - surface it as a decode failure, keep the original as cause
            error = StreamDecodeError(str(e) or type(e).__name__)
            await self._reporter.report_exception("Error while decoding streaming response", error)
            raise error from e

    async def _retrieve_use_case_metadata(self) -> None:
        logger.info("Fetching use case metadata")
        await self._tokens.ensure_fresh(self._session_id)
        body = await self._api.fetch_use_case_metadata(
            self._tokens.access_token, self._metadata_details
        )
        use_case = body.get("use_case")
        self._metadata = use_case if isinstance(use_case, dict) else None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def close(self) -> None:
        """Release the HTTP client (only if this client created it)."""
        await self._api.close()

    async def __aenter__(self) -> "IOStackClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


def new_client(
    access_key: str,
    use_case_data: dict[str, Any] | None = None,
    user_id: str | None = None,
    platform_root: str | None = None,
    stream_fragment_handlers: Iterable[StreamFragmentHandler] | None = None,
    error_handlers: Iterable[ErrorHandler] | None = None,
    use_case_notification_handlers: Iterable[UseCaseNotificationHandler] | None = None,
    active_node_change_notification_handlers: Iterable[ActiveNodeChangeNotificationHandler]
    | None = None,
    reference_notification_handlers: Iterable[ReferenceNotificationHandler] | None = None,
    debug_notification_handlers: Iterable[DebugNotificationHandler] | None = None,
) -> IOStackClient:
    """Module-level shortcut for IOStackClient.new_client()."""
    return IOStackClient.new_client(
        access_key=access_key,
        use_case_data=use_case_data,
        user_id=user_id,
        platform_root=platform_root,
        stream_fragment_handlers=stream_fragment_handlers,
        error_handlers=error_handlers,
        use_case_notification_handlers=use_case_notification_handlers,
        active_node_change_notification_handlers=active_node_change_notification_handlers,
        reference_notification_handlers=reference_notification_handlers,
        debug_notification_handlers=debug_notification_handlers,
    )
