"""Pydantic schemas for tenant provisioning."""

from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class ProvisionRequest(BaseModel):
    """Schema for provisioning a tenant.

    Fields are optional at the schema level so that absent or empty
    values produce the same "Missing required fields" error. The older
    ``database``/``data`` key names are still accepted.
    """

    tenant_id: str | None = Field(
        None,
        validation_alias=AliasChoices("tenant_id", "database"),
        description="Tenant id; also names the tenant database",
    )
    username: str | None = None
    password: str | None = None
    initial_settings: dict[str, Any] | None = Field(
        None,
        validation_alias=AliasChoices("initial_settings", "data"),
        description="Stored as the tenant's first settings document",
    )


class ReconcileRequest(BaseModel):
    """Schema for retrying a partially provisioned tenant."""

    initial_settings: dict[str, Any] | None = Field(
        None,
        validation_alias=AliasChoices("initial_settings", "data"),
    )


class ProvisionResponse(BaseModel):
    """Schema for provisioning responses."""

    msg: str
