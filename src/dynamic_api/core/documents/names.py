"""Naming rules for tenant databases and collections."""

from dynamic_api.core.constants import (
    FORBIDDEN_COLLECTION_NAME_CHARS,
    FORBIDDEN_DATABASE_NAME_CHARS,
    MAX_DATABASE_NAME_BYTES,
    RESERVED_DATABASE_NAMES,
    SYSTEM_COLLECTION_PREFIX,
)
from dynamic_api.core.errors import InvalidTenantError


def ensure_valid_database_name(tenant_id: str) -> str:
    """Check that a tenant id can name a MongoDB database.

    Args:
        tenant_id: Candidate database name

    Returns:
        The tenant id unchanged

    Raises:
        InvalidTenantError: If the name is empty, too long, names one of
            the server's own databases, or contains a character MongoDB
            rejects in database names
    """
    if not tenant_id:
        raise InvalidTenantError("Tenant id must not be empty")

    if len(tenant_id.encode("utf-8")) > MAX_DATABASE_NAME_BYTES:
        raise InvalidTenantError(
            f"Tenant id must be at most {MAX_DATABASE_NAME_BYTES} bytes",
            details={"tenant_id": tenant_id},
        )

    # admin, local and config belong to the server itself
    if tenant_id.lower() in RESERVED_DATABASE_NAMES:
        raise InvalidTenantError(
            f"Tenant id {tenant_id} is reserved",
            details={"tenant_id": tenant_id},
        )

    bad = sorted(set(tenant_id) & FORBIDDEN_DATABASE_NAME_CHARS)
    if bad:
        raise InvalidTenantError(
            "Tenant id contains characters not allowed in database names",
            details={"tenant_id": tenant_id, "characters": bad},
        )
    return tenant_id


def ensure_valid_collection_name(collection: str) -> str:
    """Check that a name can be used as a tenant collection.

    Raises:
        InvalidTenantError: If the name is empty, reserved, or contains
            a character MongoDB rejects in collection names
    """
    if not collection:
        raise InvalidTenantError("Collection name must not be empty")

    if collection.startswith(SYSTEM_COLLECTION_PREFIX):
        raise InvalidTenantError(
            "Collection names starting with 'system.' are reserved",
            details={"collection": collection},
        )

    bad = sorted(set(collection) & FORBIDDEN_COLLECTION_NAME_CHARS)
    if bad:
        raise InvalidTenantError(
            "Collection name contains characters that are not allowed",
            details={"collection": collection, "characters": bad},
        )
    return collection
