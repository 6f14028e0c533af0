"""Schema-less multi-tenant data API."""

__version__ = "0.1.0"
