# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the SchoolSync API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware.auth import AuthMiddleware
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import get_settings
from src.domains.program.factory import build_coordinator
from src.infrastructure.background import (
    AsyncioRetryQueue,
    build_retry_queue,
    setup_dramatiq,
    shutdown_dramatiq,
)
from src.infrastructure.cache import build_cache
from src.infrastructure.database.connection import (
    close_database,
    get_session_factory,
    init_database,
)
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes and cleans up:
    - Database connection pool
    - Settings cache (process memory or Redis)
    - Dramatiq broker (when retries are queued through Dramatiq)
    - Retry queue and cascade coordinator

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    logger.info(
        "Starting SchoolSync API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    try:
        await init_database(settings)
        app.state.session_factory = get_session_factory()
        logger.info("Database connection initialized")
    except Exception as e:
        logger.warning("Failed to initialize database connection: %s", str(e))

    app.state.cache = None
    app.state.redis_client = None
    try:
        app.state.cache, app.state.redis_client = await build_cache(settings)
    except Exception as e:
        logger.warning("Failed to initialize settings cache, caching disabled: %s", str(e))

    if settings.recovery.queue_backend == "dramatiq":
        try:
            setup_dramatiq()
            logger.info("Dramatiq broker initialized")
        except Exception as e:
            logger.warning("Failed to setup Dramatiq: %s", str(e))

    retry_queue = build_retry_queue(settings)
    app.state.retry_queue = retry_queue
    if getattr(app.state, "session_factory", None) is not None:
        app.state.coordinator = build_coordinator(
            settings, app.state.session_factory, retry_queue, app.state.cache
        )

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    if isinstance(retry_queue, AsyncioRetryQueue):
        await retry_queue.close()

    if settings.recovery.queue_backend == "dramatiq":
        try:
            shutdown_dramatiq()
            logger.info("Dramatiq broker shutdown")
        except Exception as e:
            logger.warning("Error shutting down Dramatiq: %s", str(e))

    if app.state.redis_client is not None:
        try:
            await app.state.redis_client.close()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.warning("Error closing Redis: %s", str(e))

    try:
        await close_database()
        logger.info("Database connection closed")
    except Exception as e:
        logger.warning("Error closing database connection: %s", str(e))

    logger.info("Shutting down SchoolSync API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="SchoolSync API",
        description="Program configuration cascades for school management",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    app.add_middleware(AuthMiddleware)

    # CORS middleware (added last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
