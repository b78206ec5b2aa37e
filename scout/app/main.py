"""
Scout - Thinker-Doer Web-Testing Agent

FastAPI application entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scout import __version__
from scout.app.api import chat_router, session_router
from scout.app.dependencies import get_settings, initialize_services, shutdown_services

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info("Starting Scout services...")
    try:
        await initialize_services()
        logger.info("Scout services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down Scout services...")
    try:
        await shutdown_services()
        logger.info("Scout services shut down successfully")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)


settings = get_settings()

app = FastAPI(
    title="Scout",
    description="Thinker-Doer web-testing agent: planning, delegated browser execution, durable transcripts",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router, prefix="/api")
app.include_router(session_router, prefix="/api")


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint with service info."""
    return {
        "service": settings.service_name,
        "version": __version__,
        "status": "running",
    }


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, Any]:
    """
    Health check endpoint.

    Returns configured LLM providers, the storage backend and the
    number of browser tools.
    """
    try:
        from scout.app.dependencies import get_browser_tools, get_model_registry

        return {
            "status": "healthy",
            "providers": get_model_registry().list_providers(),
            "storage": settings.storage_backend,
            "browser_tools": len(get_browser_tools()),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "scout.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
