"""Interactive terminal chat with an IOStack use case.

Usage:
    IOSTACK_ACCESS_KEY=... iostack-chat
    python -m iostack --access-key ... --platform-root https://staging.iostack.ai

    # Resume an existing conversation instead of creating a new one:
    iostack-chat --session-id 3f2a...

Fragments stream to stdout as they arrive (newline after the final one), errors go to
stderr. Ctrl-D or Ctrl-C ends the chat.
"""

import asyncio
import logging
import sys

import click

from iostack.application.services import IOStackClient
from iostack.config import ClientSettings, get_settings
from iostack.domain.entities import StreamFragmentPacket
from iostack.domain.exceptions import IOStackError
from iostack.infrastructure.observability import configure_logging

logger = logging.getLogger(__name__)

PROMPT = "Enter message: "


async def print_fragment(packet: StreamFragmentPacket) -> None:
    end = "\n" if packet.final else ""
    sys.stdout.write(packet.fragment + end)
    sys.stdout.flush()


async def print_error(error: str) -> None:
    print(error, file=sys.stderr)


class Harness:
    """Reads lines from stdin and sends each one as a message."""

    def __init__(
        self,
        settings: ClientSettings,
        access_key: str | None = None,
        platform_root: str | None = None,
    ) -> None:
        self._settings = settings
        self._access_key = access_key
        self._platform_root = platform_root
        self._client: IOStackClient | None = None

    async def interact_with_agent(self, session_id: str | None = None) -> None:
        """Run one chat until EOF.

        Raises:
            RuntimeError: If this harness already has a chat in progress
        """
        if self._client is not None:
            raise RuntimeError("Session already in progress")

        overrides: dict[str, str] = {}
        if self._access_key:
            overrides["access_key"] = self._access_key
        if self._platform_root:
            overrides["platform_root"] = self._platform_root

        self._client = IOStackClient.from_settings(
            self._settings,
            stream_fragment_handlers=[print_fragment],
            error_handlers=[print_error],
            **overrides,
        )

        try:
            await self._client.start_session(session_id)
            while True:
                try:
                    message = await asyncio.to_thread(input, PROMPT)
                except EOFError:
                    break
                await self._client.send_message(message)
        finally:
            self._client.deregister_all_handlers()
            await self._client.close()
            self._client = None


@click.command(name="iostack-chat")
@click.option(
    "--access-key",
    envvar="IOSTACK_ACCESS_KEY",
    help="Use-case access key",
)
@click.option(
    "--platform-root",
    envvar="IOSTACK_PLATFORM_ROOT",
    help="Platform base URL",
)
@click.option("--session-id", help="Resume this session instead of creating one")
@click.option("--log-level", help="Logging level (default: IOSTACK_LOG_LEVEL or INFO)")
@click.option(
    "--json-logs/--no-json-logs",
    default=None,
    help="Emit JSON log lines (default: IOSTACK_JSON_LOGS)",
)
@click.pass_context
def main(
    ctx: click.Context,
    access_key: str | None,
    platform_root: str | None,
    session_id: str | None,
    log_level: str | None,
    json_logs: bool | None,
) -> None:
    """Chat with an IOStack use case from the terminal."""
    settings = get_settings()

    configure_logging(
        log_level=log_level or settings.log_level,
        json_format=settings.json_logs if json_logs is None else json_logs,
        app_name="iostack-chat",
    )

    harness = Harness(settings, access_key=access_key, platform_root=platform_root)
    try:
        asyncio.run(harness.interact_with_agent(session_id))
    except KeyboardInterrupt:
        ctx.exit(130)
    except (IOStackError, ValueError) as e:
        # Platform errors were already printed by the error handler
        logger.error("Chat ended: %s", e)
        ctx.exit(1)
