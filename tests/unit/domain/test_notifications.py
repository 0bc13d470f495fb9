"""Tests for stream notification packet models."""

import pytest
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


class TestPacketType:
    def test_values_match_wire_tags(self) -> None:
        """Test the type tags the server sends."""
        assert [t.value for t in PacketType] == [
            "fragment",
            "error",
            "llm_stats",
            "use_case_notification",
            "streamed_ref",
            "debug",
        ]


class TestPacketModels:
    """Tests for parsing packets off the wire."""

    def test_fragment_defaults(self) -> None:
        packet = StreamFragmentPacket.model_validate({"type": "fragment"})

        assert packet.fragment == ""
        assert packet.final is False

    def test_unknown_fields_are_kept(self) -> None:
        """Test that fields added by the platform don't break parsing."""
        packet = StreamFragmentPacket.model_validate(
            {"type": "fragment", "fragment": "hi", "final": True, "turn": 3}
        )

        assert packet.fragment == "hi"
        assert packet.final is True
        assert packet.model_extra == {"turn": 3}

    def test_error_packet(self) -> None:
        packet = StreamingErrorPacket.model_validate({"type": "error", "error": "quota exceeded"})

        assert packet.error == "quota exceeded"
        assert packet.message is None

    def test_use_case_notification_with_arbitrary_data(self) -> None:
        packet = UseCaseNotificationPacket.model_validate(
            {"type": "use_case_notification", "name": "form_filled", "data": {"field": "email"}}
        )

        assert packet.name == "form_filled"
        assert packet.data == {"field": "email"}

    def test_active_node_change(self) -> None:
        """Test the typed payload of a graph node change."""
        packet = UseCaseActiveNodeChangeNotification.model_validate(
            {
                "type": "use_case_notification",
                "name": ACTIVE_NODE_CHANGE,
                "data": {"active_node": "Greeting", "active_node_code": "greet"},
            }
        )

        assert packet.data.active_node == "Greeting"
        assert packet.data.active_node_code == "greet"
        assert packet.data.assembly is None

    def test_active_node_change_requires_node_fields(self) -> None:
        with pytest.raises(ValidationError):
            UseCaseActiveNodeChangeNotification.model_validate(
                {"type": "use_case_notification", "name": ACTIVE_NODE_CHANGE, "data": {}}
            )

    def test_streamed_reference_default_value(self) -> None:
        packet = StreamedReferenceNotificationPacket.model_validate({"type": "streamed_ref"})

        assert packet.value == {}

    def test_debug_notification(self) -> None:
        packet = DebugNotification.model_validate(
            {"type": "debug", "name": "prompt", "data": {"tokens": 12}}
        )

        assert packet.name == "prompt"
        assert packet.data == {"tokens": 12}
