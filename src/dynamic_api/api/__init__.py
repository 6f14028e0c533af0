"""HTTP surface: health endpoints and the versioned API."""

from dynamic_api.api.router import api_router


__all__ = ["api_router"]
