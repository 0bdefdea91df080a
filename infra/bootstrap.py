"""
Relay initialization and bootstrap.

Builds every component once from the immutable configuration.
"""

import logging
from typing import Optional

import httpx

from transport.discord.dispatcher import InteractionDispatcher
from transport.discord.gateway import GatewayListener
from transport.discord.security import InvalidPublicKeyError, PublicKeyMaterial
from transport.media.proxy import ResourceProxy
from transport.media.signing import LinkSigner
from transport.n8n.sender import Forwarder

from .config import RelayConfig, get_config

logger = logging.getLogger(__name__)


def load_public_key(public_key_hex: Optional[str]) -> Optional[PublicKeyMaterial]:
    """
    Derive the public key material, or None if it is missing or invalid.

    Without a key every interaction fails verification (401).
    """
    if not public_key_hex:
        logger.warning("DISCORD_PUBLIC_KEY not set, all interactions will be rejected")
        return None
    try:
        return PublicKeyMaterial.from_hex(public_key_hex)
    except InvalidPublicKeyError as e:
        logger.error(f"DISCORD_PUBLIC_KEY unusable ({e}), all interactions will be rejected")
        return None


class RelayBootstrap:
    """
    Process-wide components, built once from configuration.

    Nothing here is mutated after construction.
    """

    def __init__(
        self,
        config: Optional[RelayConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize bootstrap with configuration.

        Args:
            config: Relay configuration (from environment if omitted)
            transport: Outbound HTTP transport for the forwarder and the
                image proxy (httpx default when omitted)
        """
        self.config = config or get_config()
        self.public_key = load_public_key(self.config.public_key_hex)
        self.forwarder = Forwarder(self.config.webhook_url, transport=transport)
        self.dispatcher = InteractionDispatcher(self.forwarder, self.config.interaction_mode)
        self.link_signer = LinkSigner(self.config.link_secret)
        self.resource_proxy = ResourceProxy(self.config.image_source_url, transport=transport)
        self.listener = self._create_listener()

    def _create_listener(self) -> Optional[GatewayListener]:
        """Gateway listener, or None when no bot token is configured."""
        if not self.config.listener_enabled:
            logger.info("DISCORD_BOT_TOKEN not set, gateway listener disabled")
            return None
        return GatewayListener(
            token=self.config.bot_token,
            forwarder=self.forwarder,
            channel_allowlist=self.config.channel_allowlist,
        )

    def __repr__(self) -> str:
        """String representation showing configured features."""
        return (
            f"RelayBootstrap(mode={self.config.interaction_mode.value}, "
            f"key={'loaded' if self.public_key else 'missing'}, "
            f"listener={'enabled' if self.listener else 'disabled'}, "
            f"links={'enabled' if self.link_signer.enabled else 'disabled'})"
        )


def bootstrap_relay(
    config: Optional[RelayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RelayBootstrap:
    """
    Build all relay components.

    Args:
        config: Optional custom configuration
        transport: Optional outbound HTTP transport

    Returns:
        RelayBootstrap instance with all components initialized
    """
    return RelayBootstrap(config, transport)
