"""Decoder for the `__|__`-delimited packet stream returned by the stream endpoint.

Hey future me - the server sends text in chunks of ANY size. A chunk may hold half a
packet, three packets, or just the `__|` of a delimiter. So we keep a running buffer:

    feed("{...A...}__|")   -> buffer "{...A...}__|"        (no complete delimiter yet)
    feed("__{...B")        -> dispatch A, buffer "{...B"
    feed("...}__|__")      -> dispatch B, buffer ""

Whatever is left in the buffer when the stream ends never had a closing delimiter and is
dropped (finish() logs how much). The buffer is per-decoder, and the client resets it at
the start of every send, so two overlapping sends on one client WILL corrupt each other.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from iostack.domain.entities import (
    ACTIVE_NODE_CHANGE,
    DebugNotification,
    PacketType,
    StreamedReferenceNotificationPacket,
    StreamFragmentPacket,
    StreamingErrorPacket,
    UseCaseActiveNodeChangeNotification,
    UseCaseNotificationPacket,
)
from iostack.domain.exceptions import StreamDecodeError, StreamProtocolError
from iostack.infrastructure.integrations.error_reporter import ErrorReporter
from iostack.infrastructure.integrations.handler_registry import (
    HandlerRegistry,
    invoke_handlers,
)
from iostack.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)

DELIMITER = "__|__"


class StreamProtocolDecoder:
    """Splits streamed text into packets and dispatches them to the handler registries."""

    def __init__(self, registry: HandlerRegistry, reporter: ErrorReporter) -> None:
        self._registry = registry
        self._reporter = reporter
        self._buffer = ""
        self._dispatch: dict[str, Callable[[dict[str, Any]], Any]] = {
            PacketType.FRAGMENT.value: self._on_fragment,
            PacketType.ERROR.value: self._on_error,
            PacketType.LLM_STATS.value: self._on_llm_stats,
            PacketType.USE_CASE_NOTIFICATION.value: self._on_use_case_notification,
            PacketType.STREAMED_REF.value: self._on_streamed_reference,
            PacketType.DEBUG.value: self._on_debug,
        }

    @property
    def pending(self) -> str:
        """Text received after the last delimiter (an incomplete packet)."""
        return self._buffer

    def reset(self) -> None:
        """Forget any partial packet."""
        self._buffer = ""

    async def feed(self, text: str) -> None:
        """Append a decoded chunk and dispatch every packet it completes.

        Packets are handled strictly in order, each one only after every handler of the
        previous packet returned. An exception from a packet stops the loop, so later
        packets in the same buffer are never dispatched.
        """
        self._buffer += text

        index = self._buffer.find(DELIMITER)
        while index != -1:
            packet = self._buffer[:index]
            self._buffer = self._buffer[index + len(DELIMITER) :]
            await self.handle_packet(packet)
            index = self._buffer.find(DELIMITER)

    def finish(self) -> None:
        """Called once the stream closed. Drops any undelimited trailing text."""
        if self._buffer:
            logger.warning(LogMessages.trailing_data_dropped(len(self._buffer)))
        self._buffer = ""

    # =========================================================================
    # PACKET DISPATCH
    # =========================================================================

    async def handle_packet(self, raw: str) -> None:
        """Parse one packet and route it by its `type` tag.

        Raises:
            StreamDecodeError: Packet is not a JSON object or does not fit its type
            StreamProtocolError: Packet was an `error` packet
        """
        if not raw:
            return

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StreamDecodeError(f"Malformed stream packet: {e}") from e

        if not isinstance(payload, dict):
            raise StreamDecodeError(
                f"Malformed stream packet: expected an object, got {type(payload).__name__}"
            )

        packet_type = payload.get("type")
        handler = self._dispatch.get(packet_type) if isinstance(packet_type, str) else None
        if handler is None:
            logger.warning(LogMessages.unknown_packet(str(packet_type), raw))
            return

        try:
            await handler(payload)
        except ValidationError as e:
            raise StreamDecodeError(f"Invalid {packet_type} packet: {e}") from e

    async def _on_fragment(self, payload: dict[str, Any]) -> None:
        packet = StreamFragmentPacket.model_validate(payload)
        # Fragments arrive JSON-encoded with single quotes escaped; undo that once,
        # before any handler sees the packet.
        packet.fragment = packet.fragment.replace("\\'", "'")
        await invoke_handlers(self._registry.stream_fragment, packet)

    async def _on_error(self, payload: dict[str, Any]) -> None:
        packet = StreamingErrorPacket.model_validate(payload)
        await self._reporter.on_error(packet.error)
        error = StreamProtocolError(packet.error or "Stream reported an error")
        error.reported = True
        raise error

    async def _on_llm_stats(self, payload: dict[str, Any]) -> None:
        pass

    async def _on_use_case_notification(self, payload: dict[str, Any]) -> None:
        if payload.get("name") == ACTIVE_NODE_CHANGE:
            active = UseCaseActiveNodeChangeNotification.model_validate(payload)
            await invoke_handlers(self._registry.active_node_change, active)
        else:
            packet = UseCaseNotificationPacket.model_validate(payload)
            await invoke_handlers(self._registry.use_case_notification, packet)

    async def _on_streamed_reference(self, payload: dict[str, Any]) -> None:
        packet = StreamedReferenceNotificationPacket.model_validate(payload)
        await invoke_handlers(self._registry.streamed_reference, packet)

    async def _on_debug(self, payload: dict[str, Any]) -> None:
        packet = DebugNotification.model_validate(payload)
        await invoke_handlers(self._registry.debug, packet)
