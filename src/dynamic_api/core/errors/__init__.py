"""Error handling module with RFC 7807 Problem Details."""

from dynamic_api.core.errors.exceptions import (
    AppException,
    BadRequestError,
    ConflictError,
    DecryptionError,
    DocumentNotFoundError,
    InvalidTenantError,
    MissingFieldError,
    NotFoundError,
    ProvisionError,
    RecordValidationError,
    StoreError,
    TenantExistsError,
    TenantNotFoundError,
    ValidationError,
)
from dynamic_api.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "BadRequestError",
    "ConflictError",
    "DecryptionError",
    "DocumentNotFoundError",
    # Handlers
    "FieldError",
    "InvalidTenantError",
    "MissingFieldError",
    "NotFoundError",
    "ProblemDetail",
    "ProvisionError",
    "RecordValidationError",
    "StoreError",
    "TenantExistsError",
    "TenantNotFoundError",
    "ValidationError",
    "register_exception_handlers",
]
