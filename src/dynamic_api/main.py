"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dynamic_api import __version__
from dynamic_api.api import api_router
from dynamic_api.config import settings
from dynamic_api.core.crypto import get_cipher
from dynamic_api.core.database import close_ledger, init_ledger
from dynamic_api.core.documents import close_mongo_client
from dynamic_api.core.errors import register_exception_handlers
from dynamic_api.core.logging import (
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
)
from dynamic_api.modules.tenants import models as tenant_models  # noqa: F401


configure_logging(settings.log_level, json_logs=settings.is_production)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Resolves the cipher key and prepares the ledger before serving;
    closes both stores on shutdown.
    """
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    # Resolve the key now so a missing key fails (or warns) at start-up
    get_cipher()

    await init_ledger()
    logger.info("ledger_initialized")

    yield

    logger.info("application_shutdown")

    await close_mongo_client()
    logger.info("document_store_closed")

    await close_ledger()
    logger.info("ledger_closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.app_name,
        description="Provision isolated tenant databases and store validated records in them",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    cors_origins = settings.cors_origins
    if settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:5173"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # RequestIdMiddleware is added last so it wraps request logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # RFC 7807 error responses
    register_exception_handlers(app)

    app.include_router(api_router)

    return app
