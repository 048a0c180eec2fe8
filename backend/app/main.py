"""
Vantage Analytics - FastAPI Application Factory
Read-only admin analytics over the challenge platform database

Run with: uvicorn app.main:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_client import make_asgi_app
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.core.config import Settings, get_settings
from app.core.logging import setup_logging
from app.infrastructure.database import DatabaseManager
from app.interfaces.api.v1 import api_router
from app.interfaces.middleware.error_handler import ErrorHandlerMiddleware
from app.interfaces.middleware.request_context import RequestContextMiddleware

logger = structlog.get_logger(__name__)


def create_limiter(settings: Settings) -> Limiter:
    """Create rate limiter."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit_default],
        storage_uri=settings.rate_limit_storage_uri,
        strategy="fixed-window",
        enabled=settings.rate_limit_enabled,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    settings: Settings = app.state.settings

    setup_logging(settings.log_level, settings.log_format)

    logger.info("Starting Vantage Analytics", version=settings.app_version)

    db_manager = DatabaseManager(settings)
    await db_manager.connect()
    app.state.db = db_manager

    yield

    logger.info("Shutting down Vantage Analytics")
    await db_manager.disconnect()
    logger.info("Shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Application factory pattern for FastAPI.

    Args:
        settings: Optional settings override for testing

    Returns:
        Configured FastAPI application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Administrative analytics for the challenge platform",
        version=settings.app_version,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Store settings in app state
    app.state.settings = settings

    # Setup rate limiter
    app.state.limiter = create_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Add middleware (order matters - last added is first executed)
    app.add_middleware(SlowAPIMiddleware)

    # Error handler
    app.add_middleware(ErrorHandlerMiddleware)

    # Request IDs (outermost, so error logs carry them)
    app.add_middleware(RequestContextMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Mount Prometheus metrics
    app.mount("/metrics", make_asgi_app())

    # Include API routes
    app.include_router(api_router, prefix="/api/v1")

    return app
