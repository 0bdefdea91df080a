"""
Discord Interactions Webhook

Receives interaction callbacks and answers within the gateway's deadline.

Update Flow:
  raw body → signature headers → verify → dispatch → reply (+ forward)
"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from infra.bootstrap import RelayBootstrap
from transport.discord.dispatcher import InvalidInteractionError
from transport.discord.security import require_signature_headers, verify_interaction_signature

logger = logging.getLogger(__name__)

router = APIRouter(tags=["interactions"])


def get_relay(request: Request) -> RelayBootstrap:
    """Components built at startup (see main.create_app)."""
    return request.app.state.relay


@router.post("/interactions")
async def discord_interactions(
    request: Request,
    relay: RelayBootstrap = Depends(get_relay),
) -> Response:
    """
    Receive a Discord interaction.

    Flow:
    1. Require signature headers (400 if missing, before any crypto)
    2. Verify Ed25519 signature over timestamp + exact raw body (401)
    3. Dispatch: PING → {"type": 1}; command → {"type": 5} + forward

    Raises:
        HTTPException(400): Missing headers or invalid payload
        HTTPException(401): Invalid signature
    """
    started = time.monotonic()
    signature, timestamp = require_signature_headers(request)
    body = await request.body()

    if not verify_interaction_signature(body, timestamp, signature, relay.public_key):
        logger.warning("Interaction rejected: invalid request signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid request signature",
        )

    try:
        result = await relay.dispatcher.dispatch(body)
    except InvalidInteractionError as e:
        logger.warning(f"Interaction rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="invalid interaction payload",
        )

    logger.debug(f"Interaction answered in {(time.monotonic() - started) * 1000:.1f} ms")

    if result.is_plain_text:
        return PlainTextResponse(result.content, status_code=result.status_code)
    return JSONResponse(result.content, status_code=result.status_code)
