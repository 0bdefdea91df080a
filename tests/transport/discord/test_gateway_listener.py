"""
Discord Gateway Listener Tests

Channel filtering, envelope building, error isolation.
No real gateway connection: messages are plain stand-in objects.
"""

import asyncio
import logging
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from transport.discord.gateway import GatewayListener, build_envelope
from transport.discord.schemas import MessageEnvelope
from transport.n8n.sender import ForwardError, ForwardResult


BOT_ID = 999


def make_message(channel_id="A", author_id=5, content="hello", guild_id=10, attachments=None):
    """Object shaped like discord.Message."""
    return SimpleNamespace(
        id=123456,
        channel=SimpleNamespace(id=channel_id),
        guild=SimpleNamespace(id=guild_id) if guild_id is not None else None,
        content=content,
        author=SimpleNamespace(id=author_id, name="alice", bot=False),
        created_at=datetime(2026, 3, 1, 12, 30, tzinfo=timezone.utc),
        attachments=attachments or [],
    )


@pytest.fixture
def forwarder():
    mock = MagicMock()
    mock.has_destination = True
    mock.forward = AsyncMock(return_value=ForwardResult(status_code=200, body=b"{}"))
    return mock


@pytest.fixture
def client():
    mock = MagicMock()
    mock.user = SimpleNamespace(id=BOT_ID, name="relay-bot")
    mock.close = AsyncMock()
    return mock


def make_listener(forwarder, client, allowlist=frozenset()) -> GatewayListener:
    return GatewayListener(
        token="bot-token",
        forwarder=forwarder,
        channel_allowlist=allowlist,
        client=client,
    )


class TestChannelFilter:
    """Test allow-list filtering."""

    @pytest.mark.asyncio
    async def test_message_outside_allowlist_not_forwarded(self, forwarder, client):
        """Allow-list {"A"}: channel "B" produces zero forwards."""
        listener = make_listener(forwarder, client, frozenset({"A"}))

        await listener.handle_message(make_message(channel_id="B"))

        forwarder.forward.assert_not_called()

    @pytest.mark.asyncio
    async def test_message_inside_allowlist_forwarded_once(self, forwarder, client):
        """Allow-list {"A"}: channel "A" produces exactly one forward."""
        listener = make_listener(forwarder, client, frozenset({"A"}))

        await listener.handle_message(make_message(channel_id="A"))

        forwarder.forward.assert_awaited_once()
        envelope = forwarder.forward.call_args[0][0]
        assert isinstance(envelope, MessageEnvelope)
        assert envelope.message.channel_id == "A"

    @pytest.mark.asyncio
    async def test_numeric_channel_id_matches_string_entry(self, forwarder, client):
        """Snowflake ints are compared as strings."""
        listener = make_listener(forwarder, client, frozenset({"1234"}))

        await listener.handle_message(make_message(channel_id=1234))

        forwarder.forward.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_allowlist_accepts_all(self, forwarder, client):
        """No allow-list means every channel."""
        listener = make_listener(forwarder, client)

        await listener.handle_message(make_message(channel_id="X"))
        await listener.handle_message(make_message(channel_id="Y"))

        assert forwarder.forward.await_count == 2


class TestMessageHandling:
    """Test forwarding behaviour and error isolation."""

    @pytest.mark.asyncio
    async def test_own_messages_skipped(self, forwarder, client):
        """Listener never forwards what it posted itself."""
        listener = make_listener(forwarder, client)

        await listener.handle_message(make_message(author_id=BOT_ID))

        forwarder.forward.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_destination_logs_only(self, forwarder, client, caplog):
        """Without a webhook URL the envelope is only logged."""
        forwarder.has_destination = False
        listener = make_listener(forwarder, client)

        with caplog.at_level(logging.INFO, logger="transport.discord.gateway"):
            await listener.handle_message(make_message())

        forwarder.forward.assert_not_called()
        assert "not forwarded" in caplog.text

    @pytest.mark.asyncio
    async def test_forward_error_is_swallowed(self, forwarder, client, caplog):
        """Forward failures are logged and never crash the listener."""
        forwarder.forward.side_effect = ForwardError("refused")
        listener = make_listener(forwarder, client)

        with caplog.at_level(logging.ERROR, logger="transport.discord.gateway"):
            await listener.handle_message(make_message())

        assert "Error handling gateway message" in caplog.text

    @pytest.mark.asyncio
    async def test_malformed_event_is_swallowed(self, forwarder, client):
        """Unexpected event shape does not raise."""
        listener = make_listener(forwarder, client)

        await listener.handle_message(SimpleNamespace(id=1))

        forwarder.forward.assert_not_called()

    @pytest.mark.asyncio
    async def test_ready_logs_identity_and_channels(self, forwarder, client, caplog):
        """Ready event logs the bot and the effective allow-list."""
        listener = make_listener(forwarder, client, frozenset({"A", "B"}))

        with caplog.at_level(logging.INFO, logger="transport.discord.gateway"):
            await listener.handle_ready()

        assert "relay-bot" in caplog.text
        assert "['A', 'B']" in caplog.text


class TestEnvelope:
    """Test envelope building."""

    def test_envelope_fields(self):
        """Envelope carries event, message, timestamp and attachments."""
        attachment = SimpleNamespace(
            id=77,
            filename="photo.jpg",
            url="https://cdn.discordapp.com/attachments/1/77/photo.jpg",
            content_type="image/jpeg",
            size=2048,
        )
        envelope = build_envelope(make_message(attachments=[attachment]))
        payload = envelope.to_payload()

        assert payload["event"] == "MESSAGE_CREATE"
        assert payload["timestamp"] == "2026-03-01T12:30:00+00:00"
        assert payload["message"] == {
            "id": "123456",
            "channel_id": "A",
            "guild_id": "10",
            "content": "hello",
            "author": {"id": "5", "username": "alice", "bot": False},
        }
        assert payload["attachments"] == [
            {
                "id": "77",
                "filename": "photo.jpg",
                "url": "https://cdn.discordapp.com/attachments/1/77/photo.jpg",
                "content_type": "image/jpeg",
                "size": 2048,
            }
        ]

    def test_direct_message_has_no_guild(self):
        """DMs have no guild id."""
        envelope = build_envelope(make_message(guild_id=None))
        assert envelope.message.guild_id is None


class TestLifecycle:
    """Test construction and shutdown."""

    def test_token_required(self, forwarder, client):
        """Listener cannot exist without a token."""
        with pytest.raises(ValueError):
            GatewayListener(token="", forwarder=forwarder, client=client)

    @pytest.mark.asyncio
    async def test_close_disconnects_client(self, forwarder, client):
        """close() disconnects even if start() never ran."""
        listener = make_listener(forwarder, client)

        await listener.close()

        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_then_close(self, forwarder, client):
        """start() runs the client in the background; close() ends it."""
        client.start = AsyncMock(return_value=None)
        listener = make_listener(forwarder, client)

        await listener.start()
        await listener.close()

        client.start.assert_awaited_once_with("bot-token")
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_after_connection_task_cancelled(self, forwarder, client):
        """A cancelled connection task does not break shutdown."""
        client.start = AsyncMock(side_effect=asyncio.CancelledError())
        listener = make_listener(forwarder, client)

        await listener.start()
        await asyncio.sleep(0)
        await listener.close()

        client.close.assert_awaited_once()
