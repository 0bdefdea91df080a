"""
Relay configuration system.

Environment-based configuration with sensible defaults.
Loaded once at startup, read-only afterwards.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from transport.discord.schemas import InteractionMode
from transport.media.proxy import DEFAULT_IMAGE_SOURCE_URL

# Load environment variables from .env file (project root, then cwd)
load_dotenv(Path(__file__).parent.parent / ".env")
load_dotenv(".env")


DEFAULT_PORT = 3000


class ConfigError(Exception):
    """Invalid configuration value."""
    pass


def parse_channel_allowlist(raw: Optional[str]) -> frozenset[str]:
    """
    Parse a comma-separated channel allow-list.

    Blank entries are dropped. An empty result means "all channels".
    """
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class RelayConfig:
    """Relay configuration from environment."""

    # Interactions
    public_key_hex: Optional[str]
    interaction_mode: InteractionMode

    # Downstream (n8n)
    webhook_url: Optional[str]

    # Gateway listener
    bot_token: Optional[str]
    channel_allowlist: frozenset[str]

    # Image proxy
    link_secret: Optional[str]
    image_source_url: str

    # Server
    port: int
    log_level: str

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """
        Load configuration from environment variables.

        Missing credentials are allowed: each one only disables the
        feature that needs it.
        """
        port_raw = os.getenv("PORT", str(DEFAULT_PORT))
        try:
            port = int(port_raw)
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got {port_raw!r}")

        mode_raw = os.getenv("INTERACTION_MODE", InteractionMode.ACK.value).strip().lower()
        try:
            mode = InteractionMode(mode_raw)
        except ValueError:
            valid = [m.value for m in InteractionMode]
            raise ConfigError(f"INTERACTION_MODE must be one of {valid}, got {mode_raw!r}")

        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ConfigError(f"LOG_LEVEL must be DEBUG, INFO, WARNING or ERROR, got {log_level!r}")

        return cls(
            public_key_hex=os.getenv("DISCORD_PUBLIC_KEY") or None,
            interaction_mode=mode,
            webhook_url=os.getenv("N8N_WEBHOOK_URL") or None,
            bot_token=os.getenv("DISCORD_BOT_TOKEN") or None,
            channel_allowlist=parse_channel_allowlist(os.getenv("DISCORD_CHANNEL_IDS")),
            link_secret=os.getenv("IMAGE_LINK_SECRET") or None,
            image_source_url=os.getenv("IMAGE_SOURCE_URL") or DEFAULT_IMAGE_SOURCE_URL,
            port=port,
            log_level=log_level,
        )

    @property
    def listener_enabled(self) -> bool:
        """Gateway listener runs only when a bot token is configured."""
        return bool(self.bot_token)

    def describe(self) -> dict[str, object]:
        """Non-sensitive view of the configuration, for startup logging."""
        return {
            "interaction_mode": self.interaction_mode.value,
            "public_key": "set" if self.public_key_hex else "missing",
            "webhook_url": "set" if self.webhook_url else "missing",
            "listener": "enabled" if self.listener_enabled else "disabled",
            "channels": sorted(self.channel_allowlist) or "all",
            "link_secret": "set" if self.link_secret else "missing",
            "port": self.port,
        }


def get_config() -> RelayConfig:
    """Get relay configuration from the current environment."""
    return RelayConfig.from_env()
