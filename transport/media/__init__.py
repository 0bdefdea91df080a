"""Signed image links and the resource proxy behind them."""

from .proxy import DEFAULT_IMAGE_SOURCE_URL, ResourceProxy, UpstreamResource, UpstreamStatusError
from .signing import IMAGE_ROUTE, LinkSigner, SIGNATURE_HEX_LENGTH

__all__ = [
    "LinkSigner",
    "IMAGE_ROUTE",
    "SIGNATURE_HEX_LENGTH",
    "ResourceProxy",
    "UpstreamResource",
    "UpstreamStatusError",
    "DEFAULT_IMAGE_SOURCE_URL",
]
