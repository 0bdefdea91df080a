"""
Infrastructure module exports.

Configuration and bootstrap for all relay components.
"""

from .config import ConfigError, InteractionMode, RelayConfig, get_config, parse_channel_allowlist
from .bootstrap import RelayBootstrap, bootstrap_relay, load_public_key

__all__ = [
    "ConfigError",
    "InteractionMode",
    "RelayConfig",
    "get_config",
    "parse_channel_allowlist",
    "RelayBootstrap",
    "bootstrap_relay",
    "load_public_key",
]
