"""
Discord Interaction Signature Verification

SECURITY BOUNDARY - Verify Ed25519 signature over timestamp + raw body.
No parsing. No forwarding. No logic.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, status
from nacl.exceptions import CryptoError
from nacl.signing import VerifyKey

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-signature-ed25519"
TIMESTAMP_HEADER = "x-signature-timestamp"

# DER SubjectPublicKeyInfo header for an Ed25519 key (RFC 8410)
ED25519_SPKI_PREFIX = bytes.fromhex("302a300506032b6570032100")
ED25519_KEY_LENGTH = 32


class InvalidPublicKeyError(Exception):
    """Public key is not a hex-encoded 32-byte Ed25519 key."""
    pass


@dataclass(frozen=True)
class PublicKeyMaterial:
    """
    Application public key, derived once at startup.

    Holds the standard SPKI DER encoding and the verify key read back
    out of it. PyNaCl only takes the 32 key bytes, so the DER header is
    checked and stripped here.
    """

    spki_der: bytes
    verify_key: VerifyKey

    @classmethod
    def from_hex(cls, public_key_hex: str) -> "PublicKeyMaterial":
        """
        Derive key material from the hex raw key shown in the developer portal.

        Raises:
            InvalidPublicKeyError: malformed hex or wrong key length
        """
        try:
            raw = bytes.fromhex(public_key_hex.strip())
        except ValueError as e:
            raise InvalidPublicKeyError(f"public key is not valid hex: {e}")

        if len(raw) != ED25519_KEY_LENGTH:
            raise InvalidPublicKeyError(
                f"public key must be {ED25519_KEY_LENGTH} bytes, got {len(raw)}"
            )

        return cls.from_spki_der(ED25519_SPKI_PREFIX + raw)

    @classmethod
    def from_spki_der(cls, spki_der: bytes) -> "PublicKeyMaterial":
        """
        Load an Ed25519 SubjectPublicKeyInfo DER blob.

        Raises:
            InvalidPublicKeyError: not an Ed25519 SPKI encoding
        """
        if (
            len(spki_der) != len(ED25519_SPKI_PREFIX) + ED25519_KEY_LENGTH
            or not spki_der.startswith(ED25519_SPKI_PREFIX)
        ):
            raise InvalidPublicKeyError("not an Ed25519 SubjectPublicKeyInfo encoding")

        return cls(
            spki_der=spki_der,
            verify_key=VerifyKey(spki_der[len(ED25519_SPKI_PREFIX):]),
        )


def verify_interaction_signature(
    body: bytes,
    timestamp: str,
    signature_hex: str,
    key: Optional[PublicKeyMaterial],
) -> bool:
    """
    Check an interaction signature.

    The signed message is the timestamp bytes followed by the exact raw
    body, with no separator. Never raises: bad hex, bad signature length,
    a missing key and a mismatch are all reported as ``False``.

    Args:
        body: Raw request body bytes, as received
        timestamp: Value of the timestamp header
        signature_hex: Value of the signature header (hex)
        key: Application key material, or None if not configured

    Returns:
        True if the signature is valid
    """
    if key is None:
        logger.warning("No public key configured, rejecting interaction")
        return False

    try:
        signature = bytes.fromhex(signature_hex)
        key.verify_key.verify(timestamp.encode("utf-8") + body, signature)
    except (CryptoError, ValueError, TypeError):
        return False

    return True


def require_signature_headers(request: Request) -> tuple[str, str]:
    """
    Read the signature headers, before any verification runs.

    Raises:
        HTTPException(400): Either header missing or empty

    Returns:
        (signature_hex, timestamp)
    """
    signature = request.headers.get(SIGNATURE_HEADER)
    timestamp = request.headers.get(TIMESTAMP_HEADER)

    if not signature or not timestamp:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="missing signature headers",
        )

    return signature, timestamp
