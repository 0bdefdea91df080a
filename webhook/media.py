"""
Signed Image Proxy Endpoint

GET /ig-image?fid=&exp=&sig= streams the backing file as image/jpeg.
Every link is short-lived; nothing is cached.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from infra.bootstrap import RelayBootstrap
from transport.media.proxy import UpstreamStatusError
from transport.media.signing import IMAGE_ROUTE

from .interactions import get_relay

logger = logging.getLogger(__name__)

router = APIRouter(tags=["media"])


def _parse_expiry(exp: str) -> int:
    try:
        return int(exp)
    except ValueError:
        return 0


@router.get(IMAGE_ROUTE)
async def signed_image(
    fid: str = "",
    exp: str = "",
    sig: str = "",
    relay: RelayBootstrap = Depends(get_relay),
):
    """
    Stream a remote image behind a signed, expiring link.

    Returns:
        Binary stream (image/jpeg, Cache-Control: no-store)

    Raises:
        HTTPException(403): Invalid, expired or incomplete link
        HTTPException(502): Upstream answered non-2xx
        HTTPException(500): Any other proxy failure
    """
    if not relay.link_signer.verify(fid, _parse_expiry(exp), sig):
        logger.warning("Image link rejected", extra={"fid": fid})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="invalid or expired signature",
        )

    try:
        resource = await relay.resource_proxy.open(fid)
    except UpstreamStatusError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"upstream fetch failed: {e.status_code}",
        )
    except Exception as e:
        logger.error(f"Image proxy error for {fid}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"proxy error: {e}",
        )

    headers = {"Cache-Control": "no-store"}
    if resource.content_length is not None:
        headers["Content-Length"] = resource.content_length

    return StreamingResponse(
        resource.iter_bytes(),
        media_type="image/jpeg",
        headers=headers,
    )
