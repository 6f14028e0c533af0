"""Credential ledger repository."""

from typing import Annotated

import structlog
from fastapi import Depends
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dynamic_api.core.database import get_session_factory
from dynamic_api.core.errors import ConflictError, StoreError
from dynamic_api.core.locks import KeyedLocks

from .models import ProvisionStatus, TenantCredential


logger = structlog.get_logger()

# Serializes check-and-insert per tenant id within this process
_insert_locks = KeyedLocks()


class CredentialLedger:
    """Repository for the append-only tenant credential ledger.

    Every operation runs in its own short transaction so a row is durable
    before any store-side provisioning starts.
    """

    def __init__(
        self,
        session_factory: Annotated[
            async_sessionmaker[AsyncSession], Depends(get_session_factory)
        ],
    ) -> None:
        self.session_factory = session_factory

    async def exists(self, tenant_id: str) -> bool:
        """Check whether a tenant id is already in the ledger."""
        return await self.get(tenant_id) is not None

    async def get(self, tenant_id: str) -> TenantCredential | None:
        """Get the ledger row for a tenant.

        Raises:
            StoreError: If the ledger cannot be read
        """
        try:
            async with self.session_factory() as session:
                return await self._get(session, tenant_id)
        except SQLAlchemyError as e:
            raise StoreError(
                "Error occurred during database check",
                details={"cause": str(e), "partial": False},
            ) from e

    async def insert(self, tenant_id: str, username: str, encrypted_secret: str) -> TenantCredential:
        """Record a new tenant if, and only if, its id is unused.

        The existence check and the insert form one critical section per
        tenant id; the unique index on ``database_name`` rejects any
        duplicate that slips past from another process.

        Raises:
            ConflictError: If the tenant id is already recorded
            StoreError: If the ledger write fails for another reason
        """
        async with _insert_locks(tenant_id):
            try:
                async with self.session_factory() as session:
                    if await self._get(session, tenant_id) is not None:
                        raise self._conflict(tenant_id)

                    credential = TenantCredential(
                        database_name=tenant_id,
                        username=username,
                        password=encrypted_secret,
                        status=ProvisionStatus.PENDING.value,
                    )
                    session.add(credential)
                    try:
                        await session.commit()
                    except IntegrityError as e:
                        await session.rollback()
                        raise self._conflict(tenant_id) from e

                    await session.refresh(credential)
                    return credential
            except SQLAlchemyError as e:
                raise StoreError(
                    "Error occurred during database creation",
                    details={"cause": str(e), "partial": False},
                ) from e

    async def set_status(self, tenant_id: str, status: ProvisionStatus) -> TenantCredential:
        """Move a tenant to a new provisioning status.

        Raises:
            StoreError: If the row is missing or the update fails
        """
        try:
            async with self.session_factory() as session:
                await session.execute(
                    update(TenantCredential)
                    .where(TenantCredential.database_name == tenant_id)
                    .values(status=status.value)
                )
                await session.commit()
                credential = await self._get(session, tenant_id)
        except SQLAlchemyError as e:
            raise StoreError(
                "Error occurred while updating tenant status",
                details={"cause": str(e), "tenant_id": tenant_id},
            ) from e

        if credential is None:
            raise StoreError(
                "Tenant disappeared from the ledger",
                details={"tenant_id": tenant_id},
            )
        return credential

    @staticmethod
    async def _get(session: AsyncSession, tenant_id: str) -> TenantCredential | None:
        stmt = select(TenantCredential).where(TenantCredential.database_name == tenant_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _conflict(tenant_id: str) -> ConflictError:
        logger.warning("ledger_conflict", tenant_id=tenant_id)
        return ConflictError(
            "Database already exists",
            error_code="tenant_exists",
            details={"tenant_id": tenant_id},
        )


# Type alias for dependency injection
LedgerRepo = Annotated[CredentialLedger, Depends(CredentialLedger)]
