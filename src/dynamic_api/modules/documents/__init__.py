"""Documents module - validated inserts and lookups in tenant collections."""

from .routes import router


# Module metadata
__module_info__ = {
    "name": "documents",
    "version": "1.0.0",
    "description": "Schema-less validated document storage",
    "dependencies": ["tenants"],
}

__all__ = ["router"]
