"""FastAPI application entry point.

Startup sequence: load .env → configure logging → build config → wire the Gemini client.
"""

import os
from contextlib import asynccontextmanager

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI

from backend.api.routes import router
from backend.core.config import RelayConfig, load_config
from backend.core.gemini_client import GeminiClient
from backend.core.log_config import configure_logging

load_dotenv()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info(
        "startup.complete",
        model=app.state.config.gemini_model,
        gemini_configured=app.state.gemini.is_healthy(),
    )
    if not app.state.gemini.is_healthy():
        logger.warning("startup.missing_key", hint="Set GEMINI_API_KEY in .env")
    yield
    logger.info("shutdown.complete")


def create_app(config: RelayConfig | None = None, gemini: GeminiClient | None = None) -> FastAPI:
    """Build the relay application.

    Args:
        config: Relay settings. Defaults to load_config() from the environment.
        gemini: Upstream client. Defaults to one built from `config`.

    Returns:
        Configured FastAPI app.
    """
    config = config or load_config()

    app = FastAPI(
        title="Chat Relay API",
        description="Relays chat messages to the Gemini generation API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.gemini = gemini or GeminiClient(config)

    app.include_router(router)
    return app


configure_logging(os.environ.get("LOG_LEVEL", "INFO"), os.environ.get("LOG_FORMAT", "console"))
app = create_app()
