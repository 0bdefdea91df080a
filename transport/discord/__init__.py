"""Discord Transport Layer - Module Exports"""

from .dispatcher import (
    DispatchResult,
    InteractionDispatcher,
    InvalidInteractionError,
    parse_interaction,
)
from .gateway import GatewayListener, build_envelope
from .schemas import (
    Interaction,
    InteractionKind,
    InteractionMode,
    InteractionResponse,
    MessageEnvelope,
)
from .security import (
    InvalidPublicKeyError,
    PublicKeyMaterial,
    require_signature_headers,
    verify_interaction_signature,
)

__all__ = [
    # Schemas
    "Interaction",
    "InteractionKind",
    "InteractionMode",
    "InteractionResponse",
    "MessageEnvelope",
    # Security
    "PublicKeyMaterial",
    "InvalidPublicKeyError",
    "verify_interaction_signature",
    "require_signature_headers",
    # Dispatch
    "InteractionDispatcher",
    "DispatchResult",
    "InvalidInteractionError",
    "parse_interaction",
    # Gateway
    "GatewayListener",
    "build_envelope",
]
