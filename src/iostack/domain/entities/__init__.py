"""Domain entities."""

from iostack.domain.entities.notifications import (
    ACTIVE_NODE_CHANGE,
    ActiveNodeChangePayload,
    ClientNotificationPacket,
    DebugNotification,
    PacketType,
    StreamedReferenceNotificationPacket,
    StreamFragmentPacket,
    StreamingErrorPacket,
    UseCaseActiveNodeChangeNotification,
    UseCaseNotificationPacket,
)

__all__ = [
    "ACTIVE_NODE_CHANGE",
    "ActiveNodeChangePayload",
    "ClientNotificationPacket",
    "DebugNotification",
    "PacketType",
    "StreamFragmentPacket",
    "StreamedReferenceNotificationPacket",
    "StreamingErrorPacket",
    "UseCaseActiveNodeChangeNotification",
    "UseCaseNotificationPacket",
]
