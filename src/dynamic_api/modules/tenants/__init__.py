"""Tenants module - provisioning and the credential ledger."""

from .routes import router


# Module metadata
__module_info__ = {
    "name": "tenants",
    "version": "1.0.0",
    "description": "Tenant database provisioning with credential issuance",
    "dependencies": [],
}

__all__ = ["router"]
