"""Async Python client for IOStack conversational agents.

Quick start:

    from iostack import new_client

    async def on_fragment(packet):
        print(packet.fragment, end="\n" if packet.final else "", flush=True)

    async with new_client(access_key="...", stream_fragment_handlers=[on_fragment]) as client:
        await client.start_session()
        await client.send_message("What can you do?")
"""

from iostack.application.services import IOStackClient, new_client
from iostack.config import DEFAULT_PLATFORM_ROOT, ClientSettings, get_settings
from iostack.domain.entities import (
    ActiveNodeChangePayload,
    ClientNotificationPacket,
    DebugNotification,
    StreamedReferenceNotificationPacket,
    StreamFragmentPacket,
    StreamingErrorPacket,
    UseCaseActiveNodeChangeNotification,
    UseCaseNotificationPacket,
)
from iostack.domain.exceptions import (
    IOStackError,
    PlatformRequestError,
    RequestTimeoutError,
    StreamDecodeError,
    StreamProtocolError,
    TokenClaimError,
)
from iostack.domain.ports import IIOStackClient

__version__ = "0.3.0"

__all__ = [
    "DEFAULT_PLATFORM_ROOT",
    "ActiveNodeChangePayload",
    "ClientNotificationPacket",
    "ClientSettings",
    "DebugNotification",
    "IIOStackClient",
    "IOStackClient",
    "IOStackError",
    "PlatformRequestError",
    "RequestTimeoutError",
    "StreamDecodeError",
    "StreamFragmentPacket",
    "StreamProtocolError",
    "StreamedReferenceNotificationPacket",
    "StreamingErrorPacket",
    "TokenClaimError",
    "UseCaseActiveNodeChangeNotification",
    "UseCaseNotificationPacket",
    "get_settings",
    "new_client",
]
