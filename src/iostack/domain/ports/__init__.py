"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from iostack.domain.entities import (
    DebugNotification,
    StreamedReferenceNotificationPacket,
    StreamFragmentPacket,
    UseCaseActiveNodeChangeNotification,
    UseCaseNotificationPacket,
)

# Handlers are normally `async def`, but plain functions work too - the dispatcher
# awaits whatever comes back if it is awaitable.
StreamFragmentHandler = Callable[[StreamFragmentPacket], Awaitable[None] | None]
ErrorHandler = Callable[[str], Awaitable[None] | None]
UseCaseNotificationHandler = Callable[[UseCaseNotificationPacket], Awaitable[None] | None]
ActiveNodeChangeNotificationHandler = Callable[
    [UseCaseActiveNodeChangeNotification], Awaitable[None] | None
]
ReferenceNotificationHandler = Callable[
    [StreamedReferenceNotificationPacket], Awaitable[None] | None
]
DebugNotificationHandler = Callable[[DebugNotification], Awaitable[None] | None]


class IIOStackClient(ABC):
    """Port for a conversational session with one IOStack use case."""

    @abstractmethod
    def get_session_id(self) -> str | None:
        """Return the current session id, or None if no session exists yet."""
        pass

    @abstractmethod
    def set_session_details(self, session_id: str, user_id: str | None) -> None:
        """Adopt an externally created session. No network call."""
        pass

    @abstractmethod
    def deregister_all_handlers(self) -> None:
        """Drop every registered handler in all six registries at once."""
        pass

    @abstractmethod
    async def start_session(self, session_id: str | None = None) -> None:
        """
        Establish (or resume) a session and trigger the agent's first response.

        Args:
            session_id: Existing session to resume. None creates a new session.
        """
        pass

    @abstractmethod
    async def send_message(self, message: str) -> None:
        """
        Send a user message and stream the reply into the registered handlers.

        Args:
            message: User text. Empty text is ignored.
        """
        pass

    @property
    @abstractmethod
    def metadata(self) -> dict[str, Any] | None:
        """Use-case metadata retrieved by start_session."""
        pass


__all__ = [
    "ActiveNodeChangeNotificationHandler",
    "DebugNotificationHandler",
    "ErrorHandler",
    "IIOStackClient",
    "ReferenceNotificationHandler",
    "StreamFragmentHandler",
    "UseCaseNotificationHandler",
]
