"""Root API router with health endpoints and module mounting."""

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.errors import PyMongoError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from dynamic_api.api.dependencies import LedgerSessions, MongoClient
from dynamic_api.config import settings
from dynamic_api.modules import discover_modules


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str


class ReadinessResponse(BaseModel):
    """Readiness check response schema."""

    status: str
    checks: dict[str, str]


# Create root API router
api_router = APIRouter()

# Health check endpoints (no /api/v1 prefix)
health_router = APIRouter(tags=["health"])


@health_router.get(
    "/health/live",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Returns 200 while the process is running.",
)
async def liveness() -> HealthResponse:
    """Liveness check endpoint."""
    return HealthResponse(status="alive")


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Checks connectivity to the credential ledger and the document store.",
)
async def readiness(sessions: LedgerSessions, client: MongoClient) -> JSONResponse:
    """Readiness check endpoint."""
    checks: dict[str, str] = {}

    try:
        async with sessions() as session:
            await session.execute(text("SELECT 1"))
        checks["ledger"] = "ok"
    except SQLAlchemyError as e:
        checks["ledger"] = str(e)

    try:
        await client.admin.command("ping")
        checks["document_store"] = "ok"
    except PyMongoError as e:
        checks["document_store"] = str(e)

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK
        if all_ok
        else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_ok else "degraded",
            "checks": checks,
        },
    )


@health_router.get(
    "/info",
    summary="Application info",
    description="Returns application metadata.",
)
async def info() -> dict[str, Any]:
    """Application info endpoint."""
    return {
        "app": settings.app_name,
        "environment": settings.environment,
        "debug": settings.debug,
    }


# Versioned API router
v1_router = APIRouter(prefix="/api/v1")

for module_router in discover_modules():
    v1_router.include_router(module_router)

api_router.include_router(health_router)
api_router.include_router(v1_router)
