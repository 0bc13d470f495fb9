"""Tests for structured log message templates."""

import pytest

from iostack.infrastructure.observability.log_messages import LogMessages, LogTemplate


class TestLogTemplate:
    def test_tree_layout_with_hint(self) -> None:
        template = LogTemplate(
            icon="🔴",
            title="Failed",
            fields={"Operation": "{op}", "Status": "401"},
            hint="Check {thing}",
        )

        assert template.format(op="stream", thing="the key") == (
            "🔴 Failed\n├─ Operation: stream\n├─ Status: 401\n└─ 💡 Check the key"
        )

    def test_missing_placeholder_does_not_raise(self) -> None:
        template = LogTemplate(icon="🔴", title="Failed", fields={"Operation": "{op}"})

        assert "<missing: 'op'>" in template.format()


class TestLogMessages:
    """Test the canned messages."""

    def test_request_failed_auth_hint(self) -> None:
        message = LogMessages.request_failed(
            "establish session", "Unauthorized:invalid access key", status_code=401
        )

        assert "Operation: establish session" in message
        assert "Status: 401" in message
        assert "IOSTACK_ACCESS_KEY" in message

    def test_request_failed_with_braces_in_error(self) -> None:
        """Test that JSON-ish server text is not treated as placeholders."""
        message = LogMessages.request_failed("stream message", 'Bad Request:{"field": "x"}')

        assert 'Reason: Bad Request:{"field": "x"}' in message

    def test_request_timeout(self) -> None:
        message = LogMessages.request_timeout("stream message", 60.0)

        assert "Timeout: 60.0s" in message

    def test_unknown_packet_truncates_payload(self) -> None:
        message = LogMessages.unknown_packet("telemetry", "x" * 500)

        assert "Type: telemetry" in message
        assert "x" * 200 + "..." in message
        assert "x" * 201 not in message

    @pytest.mark.parametrize("packet_type", ["{", "{0}", "new_{kind}", "}"])
    def test_unknown_packet_type_with_braces(self, packet_type: str) -> None:
        """Test that server-chosen type names are printed verbatim."""
        message = LogMessages.unknown_packet(packet_type, '{"type": "x"}')

        assert f"Type: {packet_type}" in message
        assert 'Payload: {"type": "x"}' in message

    def test_trailing_data_dropped(self) -> None:
        assert "Dropped: 12 chars" in LogMessages.trailing_data_dropped(12)
