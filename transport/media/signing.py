"""
Signed Image Links

SECURITY BOUNDARY - HMAC-SHA256 over "{fid}.{exp}" with a shared secret.
Links expire; signatures are compared in constant time.
"""

import hashlib
import hmac
import time
from typing import Optional
from urllib.parse import urlencode

SIGNATURE_HEX_LENGTH = hashlib.sha256().digest_size * 2

IMAGE_ROUTE = "/ig-image"


class LinkSigner:
    """Signs and verifies short-lived image links."""

    def __init__(self, secret: Optional[str]):
        self._secret = secret.encode("utf-8") if secret else b""

    @property
    def enabled(self) -> bool:
        return bool(self._secret)

    def sign(self, fid: str, exp: int) -> str:
        """Hex HMAC-SHA256 of ``"{fid}.{exp}"`` (64 chars)."""
        message = f"{fid}.{exp}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def verify(self, fid: str, exp: int, candidate: str, now: Optional[int] = None) -> bool:
        """
        Check a link signature.

        False when a field is empty or zero, when the link has expired
        (``now > exp``), or when the candidate has the wrong length.
        The length check must run before ``compare_digest``.
        """
        if not self._secret or not fid or not exp or not candidate:
            return False
        if not isinstance(fid, str) or not isinstance(exp, int) or not isinstance(candidate, str):
            return False

        current = int(time.time()) if now is None else now
        if current > exp:
            return False

        if len(candidate) != SIGNATURE_HEX_LENGTH:
            return False

        expected = self.sign(fid, exp)
        return hmac.compare_digest(expected.encode("ascii"), candidate.encode("utf-8"))

    def build_path(self, fid: str, ttl_seconds: int, now: Optional[int] = None) -> str:
        """Relative proxy URL for ``fid``, valid for ``ttl_seconds``."""
        current = int(time.time()) if now is None else now
        exp = current + ttl_seconds
        query = urlencode({"fid": fid, "exp": exp, "sig": self.sign(fid, exp)})
        return f"{IMAGE_ROUTE}?{query}"
