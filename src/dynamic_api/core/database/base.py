"""Declarative base for credential ledger tables."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Registry shared by every ledger table; ``init_ledger`` creates them all."""


class LedgerRowMixin:
    """Surrogate key and bookkeeping times for a ledger row.

    Rows are looked up by their natural key (the tenant id), so the UUID
    only identifies a row across exports. ``updated_at`` moves whenever
    the database applies an UPDATE, which for credentials means a status
    change.
    """

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
