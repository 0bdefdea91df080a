"""
Webhook module - FastAPI route handlers.

Includes:
- interactions.py: Discord interactions endpoint
- media.py: Signed image proxy endpoint
"""

from webhook.interactions import router as interactions_router
from webhook.media import router as media_router

__all__ = ["interactions_router", "media_router"]
