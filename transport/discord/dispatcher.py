"""
Interaction Dispatcher

Decides, per verified interaction, between:
- replying synchronously (handshake, unsupported types)
- acknowledging at once and forwarding in the background (ack mode)
- forwarding and relaying the downstream answer (relay mode)
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from transport.n8n.sender import ForwardError, Forwarder

from .schemas import Interaction, InteractionKind, InteractionMode, InteractionResponse

logger = logging.getLogger(__name__)


class InvalidInteractionError(Exception):
    """Verified body is not an interaction object."""
    pass


@dataclass(frozen=True)
class DispatchResult:
    """Status and content to send back to the gateway."""

    status_code: int
    content: Any
    media_type: str = "application/json"

    @classmethod
    def failure(cls, message: str) -> "DispatchResult":
        """Plain-text 500, kept apart from relayed JSON strings."""
        return cls(500, message, media_type="text/plain")

    @property
    def is_plain_text(self) -> bool:
        return self.media_type == "text/plain"


def parse_interaction(raw_body: bytes) -> Interaction:
    """
    Parse a verified body into an Interaction.

    Raises:
        InvalidInteractionError: not JSON, not an object, or no integer type
    """
    try:
        data = json.loads(raw_body)
    except ValueError as e:
        raise InvalidInteractionError(f"body is not JSON: {e}")

    if not isinstance(data, dict):
        raise InvalidInteractionError("body is not a JSON object")

    try:
        return Interaction.model_validate(data)
    except ValidationError as e:
        raise InvalidInteractionError(f"invalid interaction: {e.error_count()} error(s)")


class InteractionDispatcher:
    """State machine over verified interactions."""

    def __init__(self, forwarder: Forwarder, mode: InteractionMode = InteractionMode.ACK):
        self.forwarder = forwarder
        self.mode = mode

    async def dispatch(self, raw_body: bytes) -> DispatchResult:
        """
        Answer one verified interaction.

        ``raw_body`` is forwarded exactly as received.

        Raises:
            InvalidInteractionError: body cannot be parsed
        """
        interaction = parse_interaction(raw_body)
        kind = interaction.kind

        logger.info(
            f"Dispatching interaction type={interaction.type} ({kind.value})",
            extra={"interaction_id": interaction.interaction_id, "mode": self.mode.value},
        )

        if kind is InteractionKind.HANDSHAKE:
            return DispatchResult(200, InteractionResponse.pong().model_dump())

        if kind is InteractionKind.COMMAND:
            if self.mode is InteractionMode.RELAY:
                return await self._forward_and_relay(raw_body)
            self.forwarder.forward_detached(raw_body)

        return DispatchResult(200, InteractionResponse.deferred().model_dump())

    async def _forward_and_relay(self, raw_body: bytes) -> DispatchResult:
        try:
            result = await self.forwarder.forward(raw_body)
            content = result.json()
        except ForwardError as e:
            logger.error(f"Relay forward failed: {e}")
            return DispatchResult.failure("forward failed")

        return DispatchResult(result.status_code, content)
