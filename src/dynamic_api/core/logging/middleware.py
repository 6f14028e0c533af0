"""Request logging and request ID middleware.

This module provides middleware for logging all HTTP requests and responses
with structured logging via structlog, and for tagging every request with
a unique ID that flows into logs, error bodies and response headers.
"""

import time
import uuid
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that adds a unique request ID to each request.

    The request ID is added to:
    - request.state.request_id
    - Response header X-Request-ID
    - Structlog context
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id
        request.state.trace_id = request_id  # Alias for error handler

        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        # Routes bind tenant_id and collection once resolved
        structlog.contextvars.unbind_contextvars("request_id", "tenant_id", "collection")

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs all HTTP requests and responses.

    Logs include:
    - Request method and path
    - Response status code
    - Request duration
    - Request ID (if set by RequestIdMiddleware)
    - Tenant ID (if a tenant-scoped route resolved one)

    Request bodies are never logged: they carry tenant passwords.
    """

    def __init__(
        self,
        app: Any,
        exclude_paths: list[str] | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application
            exclude_paths: Paths to exclude from logging (e.g., health checks)
        """
        super().__init__(app)
        self.exclude_paths = exclude_paths or [
            "/health/live",
            "/health/ready",
            "/docs",
            "/redoc",
            "/openapi.json",
        ]

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        if path.startswith(tuple(self.exclude_paths)):
            return await call_next(request)

        # request_id arrives through the structlog context
        log = logger.bind(method=request.method, path=path)
        log.info(
            "request_started",
            client_ip=request.client.host if request.client else None,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            log.exception("request_failed", duration_ms=_elapsed_ms(started), error=str(exc))
            raise

        completed: dict[str, Any] = {
            "status_code": response.status_code,
            "duration_ms": _elapsed_ms(started),
        }
        tenant_id = getattr(request.state, "tenant_id", None)
        if tenant_id:
            completed["tenant_id"] = tenant_id

        if response.status_code >= 500:
            log.error("request_completed", **completed)
        elif response.status_code >= 400:
            log.warning("request_completed", **completed)
        else:
            log.info("request_completed", **completed)

        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
