"""Structured log message templates for consistent, human-readable logging.

Hey future me - instead of one-line "Error: 401" messages, platform failures come out like:

    🔴 IOStack Request Failed
    ├─ Operation: refresh access token
    ├─ Status: 401
    ├─ Reason: Unauthorized:token expired
    └─ 💡 Check: is IOSTACK_ACCESS_KEY valid for this use case?

Usage:
    from iostack.infrastructure.observability.log_messages import LogMessages

    logger.error(LogMessages.request_failed(operation="establish session", error=str(e)))
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class LogTemplate:
    """A reusable log message template with placeholders."""

    icon: str
    title: str
    fields: dict[str, str]
    hint: str | None = None

    def format(self, **kwargs: Any) -> str:
        """Format the template with provided values.

        Args:
            **kwargs: Values to fill into template placeholders

        Returns:
            Multi-line message with icon, tree-style fields and optional hint
        """
        lines = [f"{self.icon} {self.title}"]

        field_items = list(self.fields.items())
        for i, (key, value_template) in enumerate(field_items):
            prefix = "└─" if i == len(field_items) - 1 and not self.hint else "├─"
            try:
                value = value_template.format(**kwargs)
            except KeyError as e:
                value = f"<missing: {e}>"
            lines.append(f"{prefix} {key}: {value}")

        if self.hint:
            try:
                hint_text = self.hint.format(**kwargs)
            except KeyError as e:
                hint_text = f"<missing: {e}>"
            lines.append(f"└─ 💡 {hint_text}")

        return "\n".join(lines)


class LogMessages:
    """Collection of standardized log message templates.

    Categories:
    - Platform requests (failures, timeouts)
    - Credentials (token renewals)
    - Stream decoding (unknown packets, dropped data)
    """

    # === Platform Requests ===

    @staticmethod
    def request_failed(
        operation: str,
        error: str,
        status_code: int | None = None,
        hint: str | None = None,
    ) -> str:
        """Format a failed platform call.

        Args:
            operation: What was attempted (e.g., "establish session")
            error: Error text reported to the handlers
            status_code: HTTP status, if a response arrived at all
            hint: Custom troubleshooting hint
        """
        fields = {"Operation": operation}
        if status_code is not None:
            fields["Status"] = str(status_code)
        fields["Reason"] = error

        default_hint = None
        if status_code in (401, 403):
            default_hint = "Check: is IOSTACK_ACCESS_KEY valid for this use case?"

        template = LogTemplate(
            icon="🔴",
            title="IOStack Request Failed",
            # Braces in server messages must not be read as placeholders
            fields={k: v.replace("{", "{{").replace("}", "}}") for k, v in fields.items()},
            hint=hint or default_hint,
        )
        return template.format()

    @staticmethod
    def request_timeout(operation: str, timeout: float, hint: str | None = None) -> str:
        """Format a platform call that hit its deadline.

        Args:
            operation: What was attempted
            timeout: Deadline in seconds
            hint: Custom troubleshooting hint
        """
        template = LogTemplate(
            icon="⏱️",
            title="IOStack Request Timeout",
            fields={"Operation": operation, "Timeout": f"{timeout}s"},
            hint=hint or "Raise IOSTACK_REQUEST_TIMEOUT / IOSTACK_STREAM_TIMEOUT or check the platform root",
        )
        return template.format()

    # === Credentials ===

    @staticmethod
    def token_renewed(token: str, refresh_in_seconds: float) -> str:
        """Format a successful token renewal.

        Args:
            token: Which token ("access token", "refresh token")
            refresh_in_seconds: Seconds until the next scheduled renewal
        """
        template = LogTemplate(
            icon="🔑",
            title=f"Renewed {token}",
            fields={"Next renewal": f"in {refresh_in_seconds:.0f}s"},
        )
        return template.format()

    # === Stream Decoding ===

    @staticmethod
    def unknown_packet(packet_type: str, payload: str) -> str:
        """Format an unrecognised stream packet.

        Args:
            packet_type: Value of the packet's `type` tag
            payload: Raw packet text (truncated for the log)
        """
        if len(payload) > 200:
            payload = payload[:200] + "..."
        template = LogTemplate(
            icon="❓",
            title="Unknown streaming packet seen",
            # Server-controlled text goes in as values, never as template text
            fields={"Type": "{packet_type}", "Payload": "{payload}"},
        )
        return template.format(packet_type=packet_type or "<missing>", payload=payload)

    @staticmethod
    def trailing_data_dropped(length: int) -> str:
        """Format the warning for undelimited text left over at stream end.

        Args:
            length: Number of characters that were discarded
        """
        template = LogTemplate(
            icon="⚠️",
            title="Stream ended with undelimited data",
            fields={"Dropped": f"{length} chars"},
            hint="The server should terminate every packet with __|__",
        )
        return template.format()
