"""
Image Resource Proxy

Fetches a remote file by id and hands back a byte stream.
No caching. No retries. No transformation.
"""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_SOURCE_URL = "https://drive.google.com/uc?export=download&id={fid}"


class UpstreamStatusError(Exception):
    """Upstream answered with a non-success status."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"upstream returned {status_code}")


@dataclass
class UpstreamResource:
    """An open upstream response, consumed once through ``iter_bytes``."""

    response: httpx.Response
    client: httpx.AsyncClient

    @property
    def content_length(self) -> Optional[str]:
        # Decoded bytes no longer match a compressed length
        if self.response.headers.get("content-encoding"):
            return None
        return self.response.headers.get("content-length")

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        await self.response.aclose()
        await self.client.aclose()


class ResourceProxy:
    """Opens direct-download streams for backing file ids."""

    def __init__(
        self,
        url_template: str = DEFAULT_IMAGE_SOURCE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url_template = url_template
        self._transport = transport

    def source_url(self, fid: str) -> str:
        return self.url_template.format(fid=quote(fid, safe=""))

    async def open(self, fid: str) -> UpstreamResource:
        """
        Start fetching ``fid``, following redirects.

        Raises:
            UpstreamStatusError: upstream status is not 2xx
            httpx.HTTPError: the request itself failed
        """
        url = self.source_url(fid)
        client = httpx.AsyncClient(transport=self._transport, follow_redirects=True)

        try:
            request = client.build_request("GET", url)
            response = await client.send(request, stream=True)
        except Exception:
            await client.aclose()
            raise

        if not response.is_success:
            logger.warning(
                f"Upstream fetch failed for {fid}: {response.status_code}",
                extra={"fid": fid, "status_code": response.status_code},
            )
            await response.aclose()
            await client.aclose()
            raise UpstreamStatusError(response.status_code)

        logger.debug(f"Streaming upstream resource {fid}")
        return UpstreamResource(response=response, client=client)
