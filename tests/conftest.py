"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest
from nacl.signing import SigningKey

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from infra.config import RelayConfig  # noqa: E402
from transport.discord.schemas import InteractionMode  # noqa: E402


WEBHOOK_URL = "http://n8n.test/webhook/discord"
IMAGE_SOURCE_URL = "https://files.test/download?id={fid}"
LINK_SECRET = "test-link-secret"


@pytest.fixture
def signing_key() -> SigningKey:
    """Fresh Ed25519 key pair standing in for the Discord application key."""
    return SigningKey.generate()


@pytest.fixture
def public_key_hex(signing_key) -> str:
    return signing_key.verify_key.encode().hex()


@pytest.fixture
def make_config(public_key_hex):
    """Build a RelayConfig with test defaults; keyword args override."""

    def _make(**overrides) -> RelayConfig:
        values = dict(
            public_key_hex=public_key_hex,
            interaction_mode=InteractionMode.ACK,
            webhook_url=WEBHOOK_URL,
            bot_token=None,
            channel_allowlist=frozenset(),
            link_secret=LINK_SECRET,
            image_source_url=IMAGE_SOURCE_URL,
            port=3000,
            log_level="INFO",
        )
        values.update(overrides)
        return RelayConfig(**values)

    return _make


@pytest.fixture
def signed_headers(signing_key):
    """Return a function producing Discord signature headers for a body."""

    def _sign(body: bytes, timestamp: str = "1700000000") -> dict[str, str]:
        signature = signing_key.sign(timestamp.encode() + body).signature
        return {
            "x-signature-ed25519": signature.hex(),
            "x-signature-timestamp": timestamp,
        }

    return _sign
