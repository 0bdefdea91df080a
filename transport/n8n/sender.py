"""
n8n Webhook Forwarder

Relays payloads to the configured n8n webhook.
Single attempt. No timeout. No retries. No logic.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

Payload = Union[bytes, BaseModel, dict, list]


class ForwardError(Exception):
    """Failed to forward a payload downstream."""
    pass


@dataclass(frozen=True)
class ForwardResult:
    """Downstream answer to an awaited forward."""

    status_code: int
    body: bytes
    content_type: Optional[str] = None

    def json(self) -> Any:
        """
        Decode the downstream body as JSON.

        Raises:
            ForwardError: body is not valid JSON
        """
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise ForwardError(f"Downstream returned non-JSON body: {e}")


def encode_payload(payload: Payload) -> bytes:
    """Raw bytes pass through untouched; everything else is JSON-encoded."""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if isinstance(payload, BaseModel):
        return payload.model_dump_json().encode("utf-8")
    return json.dumps(payload).encode("utf-8")


class Forwarder:
    """
    POSTs JSON payloads to a single downstream webhook.

    Callers choose per call site: ``forward`` (awaited, returns the
    downstream answer) or ``forward_detached`` (fire-and-forget).
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self._transport = transport
        self.pending: set[asyncio.Task] = set()

    @property
    def has_destination(self) -> bool:
        return bool(self.webhook_url)

    async def forward(self, payload: Payload) -> ForwardResult:
        """
        POST ``payload`` to the webhook and wait for the answer.

        Raises:
            ForwardError: no webhook configured, or the HTTP call failed
        """
        if not self.webhook_url:
            raise ForwardError("N8N_WEBHOOK_URL not configured")

        content = encode_payload(payload)

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                response = await client.post(
                    self.webhook_url,
                    content=content,
                    headers={"content-type": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error(
                f"Forward to n8n failed: {e}",
                extra={"webhook_url": self.webhook_url, "error": str(e)},
            )
            raise ForwardError(f"HTTP request failed: {e}")

        logger.info(
            f"Forwarded to n8n: {response.status_code}",
            extra={
                "status_code": response.status_code,
                "payload_bytes": len(content),
            },
        )

        return ForwardResult(
            status_code=response.status_code,
            body=response.content,
            content_type=response.headers.get("content-type"),
        )

    def forward_detached(self, payload: Payload) -> asyncio.Task:
        """
        Schedule a forward without waiting for it.

        The task is kept referenced until done. Its outcome goes to the
        log only and never reaches the caller.
        """
        task = asyncio.get_running_loop().create_task(self._forward_logged(payload))
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)
        return task

    async def _forward_logged(self, payload: Payload) -> Optional[ForwardResult]:
        try:
            return await self.forward(payload)
        except ForwardError as e:
            logger.error(f"Detached forward failed: {e}")
        except Exception as e:
            logger.error(f"Unexpected error in detached forward: {e}", exc_info=True)
        return None

    async def drain(self) -> None:
        """Wait for detached forwards that are still in flight."""
        if self.pending:
            await asyncio.gather(*list(self.pending), return_exceptions=True)
