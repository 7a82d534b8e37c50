"""
FastAPI application factory.

``create_app()`` assembles the application with CORS, error handlers,
routers, and the health endpoint. The module-level ``app`` instance
allows ``uvicorn src.api.app:app --reload``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api import websocket
from src.api.middleware.error_handler import register_error_handlers
from src.api.routes import analysis, providers, sessions, users
from src.core.config import configure_logging, get_settings
from src.core.models import HealthResponse
from src.services.storage.database import close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    Startup: configure logging and create the database tables if needed.
    Shutdown: dispose the DB engine.
    """
    configure_logging()
    await init_db()
    logger.info("OratoriaFlow API started")
    yield
    await close_db()


def create_app() -> FastAPI:
    """Build and return a fully configured FastAPI application.

    Returns:
        FastAPI: The configured application, ready for ``uvicorn``.
    """

    app = FastAPI(
        title="OratoriaFlow",
        description="Speech practice with multi-provider analysis, "
        "local fallback scoring, and gamified feedback.",
        version="0.1.0",
        lifespan=lifespan,
    )

    # -- CORS --
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api/v1) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(providers.router, prefix="/api/v1")
    app.include_router(analysis.router, prefix="/api/v1")
    app.include_router(users.router, prefix="/api/v1")
    app.include_router(sessions.router, prefix="/api/v1")

    # -- WebSocket --
    app.include_router(websocket.router)

    return app


app = create_app()
