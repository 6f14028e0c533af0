"""RFC 7807 Problem Details exception handlers.

Every error body carries the standard members plus ``msg``, the key
older clients read the human-readable message from.

See: https://tools.ietf.org/html/rfc7807
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from dynamic_api.config import settings
from dynamic_api.core.errors.exceptions import AppException


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()


class FieldError(BaseModel):
    """One request-shape error reported by Pydantic."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response schema.

    Attributes:
        type: URI reference identifying the problem type
        title: Short human-readable summary
        status: HTTP status code
        detail: Human-readable explanation specific to this occurrence
        msg: Same explanation, under the legacy key
        instance: Request path
        trace_id: Request ID, for matching the body to log lines
    """

    type: str
    title: str
    status: int
    detail: str
    msg: str | None = None
    instance: str | None = None
    trace_id: str | None = None

    model_config = {"extra": "allow"}


def _problem(
    request: Request,
    status_code: int,
    error_code: str,
    detail: str,
    title: str | None = None,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build a Problem Details response.

    ``extra`` members are added after the standard ones and never
    overwrite them.
    """
    content: dict[str, Any] = ProblemDetail(
        type=f"{settings.api_docs_base_url}/errors/{error_code}",
        title=title or error_code.replace("_", " ").title(),
        status=status_code,
        detail=detail,
        msg=detail,
        instance=request.url.path,
        trace_id=getattr(request.state, "trace_id", None),
    ).model_dump(exclude_none=True)

    for key, value in (extra or {}).items():
        content.setdefault(key, value)

    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render domain exceptions.

    Server-side failures are logged at error level with their details,
    which name the partial state left behind, if any.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "app_exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
        details=exc.details,
    )
    return _problem(request, exc.status_code, exc.error_code, exc.message, extra=exc.details)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request bodies that do not match the endpoint schema.

    Rendered as 400, the status of every other malformed-input error,
    instead of FastAPI's default 422. Record batches that parse but fail
    field checks go through app_exception_handler instead.
    """
    errors = [
        FieldError(
            field=".".join(str(part) for part in error.get("loc", ()) if part != "body")
            or "unknown",
            message=error.get("msg", "Invalid value"),
            type=error.get("type"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "request_validation_error",
        path=request.url.path,
        error_count=len(errors),
    )
    return _problem(
        request,
        status.HTTP_400_BAD_REQUEST,
        "request_validation_error",
        "Request validation failed",
        extra={"errors": [error.model_dump(exclude_none=True) for error in errors]},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render anything unhandled as an opaque 500; the traceback goes to the log."""
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return _problem(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
        title="Internal Server Error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(
        AppException, cast("ExceptionHandler", app_exception_handler)
    )
    app.add_exception_handler(
        RequestValidationError, cast("ExceptionHandler", validation_exception_handler)
    )
    app.add_exception_handler(Exception, generic_exception_handler)
