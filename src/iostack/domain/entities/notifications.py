"""Typed notification packets carried by the streaming response.

Hey future me - the server streams JSON packets separated by `__|__`, each tagged with a
`type`. These models are what the handlers receive. They accept unknown extra fields
(extra="allow") because the platform adds fields without telling anyone, and a strict
model would turn a harmless server upgrade into a decode failure mid-conversation.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class PacketType(str, Enum):
    """Values of the `type` tag on stream packets."""

    FRAGMENT = "fragment"
    ERROR = "error"
    LLM_STATS = "llm_stats"
    USE_CASE_NOTIFICATION = "use_case_notification"
    STREAMED_REF = "streamed_ref"
    DEBUG = "debug"


ACTIVE_NODE_CHANGE = "graph_active_node_change"


class ClientNotificationPacket(BaseModel):
    """Base for every packet: just the `type` tag plus whatever else was sent."""

    model_config = ConfigDict(extra="allow")

    type: str


class StreamFragmentPacket(ClientNotificationPacket):
    """An incremental slice of the agent's reply. `final` marks the last slice."""

    fragment: str = ""
    final: bool = False


class StreamingErrorPacket(ClientNotificationPacket):
    error: str = ""
    message: str | None = None


class UseCaseNotificationPacket(ClientNotificationPacket):
    """Generic use-case notification, routed by `name`."""

    name: str = ""
    data: Any = None


class ActiveNodeChangePayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    active_node: str
    active_node_code: str
    assembly: dict[str, Any] | None = None


class UseCaseActiveNodeChangeNotification(ClientNotificationPacket):
    """The agent's workflow graph moved to a different node."""

    name: str = ACTIVE_NODE_CHANGE
    data: ActiveNodeChangePayload


class StreamedReferenceNotificationPacket(ClientNotificationPacket):
    value: dict[str, Any] = {}


class DebugNotification(ClientNotificationPacket):
    name: str = ""
    data: Any = None
