"""
Discord Gateway Listener

Mirrors channel messages to the n8n webhook.
Handles:
- Connection lifecycle (start inside app lifespan, clean close)
- Channel allow-list filtering
- Envelope building (discord.Message → MessageEnvelope)

Handler errors are logged, never raised: the listener must keep running.
"""

import asyncio
import logging
from typing import Any, Optional

import discord

from transport.n8n.sender import Forwarder

from .schemas import EnvelopeAttachment, EnvelopeAuthor, EnvelopeMessage, MessageEnvelope

logger = logging.getLogger(__name__)


def build_envelope(message: Any) -> MessageEnvelope:
    """
    Convert a gateway message into the forwarded envelope.

    Args:
        message: discord.Message (or any object with the same attributes)
    """
    guild = getattr(message, "guild", None)
    return MessageEnvelope(
        message=EnvelopeMessage(
            id=str(message.id),
            channel_id=str(message.channel.id),
            guild_id=str(guild.id) if guild is not None else None,
            content=message.content or "",
            author=EnvelopeAuthor(
                id=str(message.author.id),
                username=str(message.author.name),
                bot=bool(getattr(message.author, "bot", False)),
            ),
        ),
        timestamp=message.created_at.isoformat(),
        attachments=[
            EnvelopeAttachment(
                id=str(att.id),
                filename=att.filename,
                url=att.url,
                content_type=getattr(att, "content_type", None),
                size=getattr(att, "size", None),
            )
            for att in (message.attachments or [])
        ],
    )


class GatewayListener:
    """
    Persistent gateway connection that forwards accepted messages.

    Pure I/O: filters and forwards, no message interpretation.
    """

    def __init__(
        self,
        token: str,
        forwarder: Forwarder,
        channel_allowlist: frozenset[str] = frozenset(),
        client: Optional[discord.Client] = None,
    ):
        if not token:
            raise ValueError("DISCORD_BOT_TOKEN not set")

        self.token = token
        self.forwarder = forwarder
        self.channel_allowlist = channel_allowlist
        self.client = client or self._build_client()
        self._task: Optional[asyncio.Task] = None

    def _build_client(self) -> discord.Client:
        intents = discord.Intents.default()
        intents.message_content = True
        client = discord.Client(intents=intents)

        @client.event
        async def on_ready():
            await self.handle_ready()

        @client.event
        async def on_message(message: discord.Message):
            await self.handle_message(message)

        return client

    def accepts_channel(self, channel_id: Any) -> bool:
        """Empty allow-list accepts every channel."""
        if not self.channel_allowlist:
            return True
        return str(channel_id) in self.channel_allowlist

    async def handle_ready(self) -> None:
        user = self.client.user
        channels = sorted(self.channel_allowlist) if self.channel_allowlist else "all"
        logger.info(
            f"Gateway connected as {user} (channels: {channels})",
            extra={"bot_id": getattr(user, "id", None)},
        )

    async def handle_message(self, message: Any) -> None:
        """Forward one message event. Never raises."""
        try:
            own = self.client.user
            if own is not None and message.author.id == own.id:
                return

            if not self.accepts_channel(message.channel.id):
                return

            envelope = build_envelope(message)

            if not self.forwarder.has_destination:
                logger.info(
                    f"No webhook configured, message {envelope.message.id} not forwarded",
                    extra={"envelope": envelope.to_payload()},
                )
                return

            result = await self.forwarder.forward(envelope)
            logger.info(
                f"Message {envelope.message.id} forwarded: {result.status_code}",
                extra={"channel_id": envelope.message.channel_id},
            )
        except Exception as e:
            logger.error(f"Error handling gateway message: {e}", exc_info=True)

    async def start(self) -> None:
        """Connect in the background; returns immediately."""
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self.client.start(self.token))
        self._task.add_done_callback(self._on_stopped)
        logger.info("Gateway listener starting")

    def _on_stopped(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Gateway listener stopped: {error}", exc_info=error)

    async def close(self) -> None:
        """Disconnect cleanly and wait for the connection task to end."""
        await self.client.close()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                if not self._task.cancelled():
                    raise
                logger.info("Gateway listener task was cancelled")
            except Exception as e:
                logger.warning(f"Gateway listener ended with error: {e}")
            self._task = None
        logger.info("Gateway listener closed")
