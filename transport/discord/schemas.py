"""
Discord Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Defines the interaction contract and the envelope forwarded to n8n.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt


# ============================================================================
# INTERACTIONS (INPUT)
# ============================================================================

class InteractionKind(str, Enum):
    """Dispatcher states derived from the interaction ``type`` field."""

    HANDSHAKE = "handshake"  # type 1 (PING)
    COMMAND = "command"      # type 2 (APPLICATION_COMMAND)
    OTHER = "other"


class InteractionMode(str, Enum):
    """How command interactions (type 2) are answered."""

    ACK = "ack"      # reply {"type": 5} at once, forward in the background
    RELAY = "relay"  # forward, wait, relay downstream status + JSON


PING = 1
APPLICATION_COMMAND = 2
DEFERRED_CHANNEL_MESSAGE = 5


class Interaction(BaseModel):
    """
    Inbound interaction, parsed only after the signature is verified.

    Only ``type`` drives dispatch; the rest of the payload is kept as-is
    and forwarded as the original raw bytes.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    type: StrictInt

    @property
    def interaction_id(self) -> Optional[str]:
        value = (self.model_extra or {}).get("id")
        return None if value is None else str(value)

    @property
    def kind(self) -> InteractionKind:
        if self.type == PING:
            return InteractionKind.HANDSHAKE
        if self.type == APPLICATION_COMMAND:
            return InteractionKind.COMMAND
        return InteractionKind.OTHER


class InteractionResponse(BaseModel):
    """Synchronous reply to the gateway: PONG or deferred sentinel."""

    type: int

    @classmethod
    def pong(cls) -> "InteractionResponse":
        return cls(type=PING)

    @classmethod
    def deferred(cls) -> "InteractionResponse":
        return cls(type=DEFERRED_CHANNEL_MESSAGE)


# ============================================================================
# GATEWAY MESSAGE ENVELOPE (OUTPUT TO N8N)
# ============================================================================

class EnvelopeAuthor(BaseModel):
    """Message author."""
    id: str
    username: str
    bot: bool = False


class EnvelopeMessage(BaseModel):
    """Message fields n8n workflows consume."""
    id: str
    channel_id: str
    guild_id: Optional[str] = None
    content: str = ""
    author: EnvelopeAuthor


class EnvelopeAttachment(BaseModel):
    """Attachment metadata (the file itself is not downloaded)."""
    id: str
    filename: str
    url: str
    content_type: Optional[str] = None
    size: Optional[int] = None


class MessageEnvelope(BaseModel):
    """
    Envelope forwarded for every accepted gateway message.

    {event, message, timestamp, attachments}
    """

    event: str = Field(default="MESSAGE_CREATE")
    message: EnvelopeMessage
    timestamp: str = Field(..., description="Message creation time, ISO-8601")
    attachments: list[EnvelopeAttachment] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
