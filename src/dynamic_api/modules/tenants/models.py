"""Credential ledger database models."""

from enum import Enum

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dynamic_api.core.constants import MAX_DATABASE_NAME_BYTES, MAX_STATUS_LENGTH, MAX_USERNAME_LENGTH
from dynamic_api.core.database.base import Base, LedgerRowMixin


class ProvisionStatus(str, Enum):
    """Where a tenant stands in the provisioning sequence."""

    PENDING = "pending"  # ledger row written, store not yet confirmed
    ACTIVE = "active"
    FAILED = "failed"  # store step failed; eligible for reconciliation


class TenantCredential(LedgerRowMixin, Base):
    """One provisioned tenant and the credentials issued for it.

    Credential columns are written once. Only ``status`` changes, as
    provisioning or reconciliation moves forward.

    Attributes:
        database_name: Tenant id; also the name of its store database
        username: Account that owns the tenant database
        password: Encrypted secret token (``iv_hex:ciphertext_hex``)
        status: Provisioning status
    """

    __tablename__ = "tenant_credentials"

    database_name: Mapped[str] = mapped_column(
        String(MAX_DATABASE_NAME_BYTES),
        nullable=False,
        unique=True,
        index=True,
    )
    username: Mapped[str] = mapped_column(
        String(MAX_USERNAME_LENGTH),
        nullable=False,
    )
    password: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        nullable=False,
        default=ProvisionStatus.PENDING.value,
    )

    def __repr__(self) -> str:
        return f"<TenantCredential(database_name={self.database_name}, status={self.status})>"
