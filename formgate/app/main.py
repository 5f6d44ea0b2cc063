"""
formgate - Dependency-aware admin forms

FastAPI application entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from formgate import __version__
from formgate.app.api import admin_router
from formgate.app.dependencies import get_registry, get_settings
from formgate.config import FormgateSettings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(
        f"Starting formgate: entities={get_registry().list_entities()}"
    )
    yield
    logger.info("Shutting down formgate")


def create_app(settings: FormgateSettings | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    The data bridge needs a session, so SessionMiddleware is always
    installed, signed with ``settings.session_secret``.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title="formgate",
        description="Dependency-aware field resolution for admin record forms",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret.get_secret_value(),
        session_cookie=settings.session_cookie,
    )

    app.include_router(admin_router)

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
        """Health check endpoint listing the served entities."""
        return {
            "status": "healthy",
            "environment": settings.environment,
            "entities": get_registry().list_entities(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "formgate.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().debug,
    )
