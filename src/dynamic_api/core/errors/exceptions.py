"""Domain exceptions for the application.

These exceptions represent business-logic and infrastructure errors and are
automatically converted to RFC 7807 Problem Details responses by the
exception handlers.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================
# Client errors
# ============================================================


class BadRequestError(AppException):
    """Raised for general client errors.

    Example:
        raise BadRequestError("Invalid request format")
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class MissingFieldError(BadRequestError):
    """Raised when a required top-level request field is absent or empty.

    Example:
        raise MissingFieldError(details={"fields": ["username"]})
    """

    message = "Missing required fields"
    error_code = "missing_fields"


class InvalidTenantError(BadRequestError):
    """Raised when a tenant id or collection name cannot name a store location."""

    message = "Invalid tenant or collection name"
    error_code = "invalid_name"


class NotFoundError(AppException):
    """Raised when a requested resource is not found.

    Example:
        raise NotFoundError("Tenant not found", resource="tenant", resource_id=tenant_id)
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class TenantNotFoundError(NotFoundError):
    """Raised when the ledger holds no row for a tenant."""

    message = "Tenant not found"
    error_code = "tenant_not_found"


class DocumentNotFoundError(NotFoundError):
    """Raised when a lookup matches no document.

    Rendered as a client error: the caller asked for something that
    does not exist, the store itself is healthy.
    """

    message = "Document not found"
    error_code = "document_not_found"
    status_code = 400


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Tenant already registered", details={"tenant_id": tenant_id})
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class TenantExistsError(ConflictError):
    """Raised when provisioning a tenant id that is already in the ledger."""

    message = "Database already exists"
    error_code = "tenant_exists"
    status_code = 400


class ValidationError(AppException):
    """Raised when request data fails validation.

    Example:
        raise ValidationError(
            "Invalid input data",
            errors=["Value is required for name"]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str | None = None,
        errors: list[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        self.errors = list(errors or [])
        super().__init__(message=message, details=details, **kwargs)


class RecordValidationError(ValidationError):
    """Raised when one or more field descriptors of a record batch fail.

    ``errors`` holds one newline-joined string per failing field,
    in row-then-key order.
    """

    message = "Record validation failed"
    error_code = "record_validation_error"
    status_code = 400


# ============================================================
# Infrastructure errors
# ============================================================


class DecryptionError(AppException):
    """Raised when a ciphertext token is malformed or fails to decrypt."""

    message = "Stored secret could not be decrypted"
    error_code = "decryption_error"
    status_code = 500


class StoreError(AppException):
    """Raised when an operation on the document store or ledger fails.

    Example:
        raise StoreError(details={"cause": str(exc)})
    """

    message = "Storage operation failed"
    error_code = "store_error"
    status_code = 500


class ProvisionError(StoreError):
    """Raised when tenant provisioning fails after the ledger row was written.

    ``details["partial"]`` tells operators whether ledger state was left
    behind for reconciliation, ``details["stage"]`` names the failed step.
    """

    message = "Error occurred during initialization"
    error_code = "provision_error"
    status_code = 500
