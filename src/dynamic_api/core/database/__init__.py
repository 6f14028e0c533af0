"""Credential ledger database layer."""

from dynamic_api.core.database.base import Base, LedgerRowMixin
from dynamic_api.core.database.session import (
    async_engine,
    async_session_factory,
    close_ledger,
    create_ledger_engine,
    create_session_factory,
    get_session_factory,
    init_ledger,
)


__all__ = [
    "Base",
    "LedgerRowMixin",
    "async_engine",
    "async_session_factory",
    "close_ledger",
    "create_ledger_engine",
    "create_session_factory",
    "get_session_factory",
    "init_ledger",
]
