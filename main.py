"""
FastAPI Application Entry Point

Integrates:
  - Discord interactions webhook
  - Signed image proxy
  - Gateway listener (background, when a bot token is set)
  - Health check
  - Middleware for logging & error handling

Run: uvicorn main:app --host 0.0.0.0 --port 3000
  or: python main.py
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from infra.bootstrap import RelayBootstrap, bootstrap_relay
from infra.config import RelayConfig, get_config
from webhook import interactions_router, media_router

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan: startup and shutdown handlers.

    uvicorn stops accepting connections on SIGTERM/SIGINT, then runs the
    shutdown half, which closes the gateway listener.
    """
    relay: RelayBootstrap = app.state.relay

    # Startup
    logger.info("=" * 60)
    logger.info("Discord relay starting up...")
    for key, value in relay.config.describe().items():
        logger.info(f"  {key}: {value}")
    logger.info("=" * 60)

    if relay.listener is not None:
        await relay.listener.start()

    yield

    # Shutdown
    logger.info("Discord relay shutting down...")
    if relay.listener is not None:
        await relay.listener.close()
    # In-flight detached forwards are best-effort
    if relay.forwarder.pending:
        logger.info(f"{len(relay.forwarder.pending)} forward(s) still in flight at shutdown")


def create_app(
    config: Optional[RelayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the application around one set of process-wide components."""
    relay = bootstrap_relay(config, transport)

    app = FastAPI(
        title="Discord Relay",
        description="Discord interactions and gateway relay to n8n",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.relay = relay

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests."""
        logger.debug(f"{request.method} {request.url.path}")
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Request error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )

    app.include_router(interactions_router)
    app.include_router(media_router)

    @app.get("/healthz", response_class=PlainTextResponse)
    async def healthz():
        """Liveness check, no auth."""
        return "ok"

    return app


config = get_config()
setup_logging(config.log_level)
app = create_app(config)


def run() -> None:
    """Start the server on the configured port."""
    uvicorn.run(app, host="0.0.0.0", port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    run()
