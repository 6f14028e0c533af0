"""Tenant provisioning service.

Provisioning spans two stores with no shared transaction: the credential
ledger (SQL) and the document store (MongoDB). The ledger row is written
first with status ``pending`` and only marked ``active`` once the store
side is complete. A failure in between leaves the row ``failed`` (or
``pending``, when the status itself cannot be written) and is reported
as a partial ProvisionError so it can be reconciled later.

Provisioning and reconciliation of one tenant never overlap within a
process, and the settings document has a fixed ``_id`` so repeating the
store steps leaves exactly one.
"""

import asyncio
from typing import Annotated, Any

import structlog
from fastapi import Depends
from pymongo import AsyncMongoClient
from pymongo.errors import OperationFailure, PyMongoError

from dynamic_api.config import settings
from dynamic_api.core.constants import INITIAL_SETTINGS_ID, MONGO_USER_EXISTS_CODE
from dynamic_api.core.crypto import SecretCipher, get_cipher
from dynamic_api.core.documents import ensure_valid_database_name, get_mongo_client
from dynamic_api.core.errors import (
    ConflictError,
    MissingFieldError,
    ProvisionError,
    StoreError,
    TenantExistsError,
    TenantNotFoundError,
)
from dynamic_api.core.locks import KeyedLocks

from .models import ProvisionStatus, TenantCredential
from .repos import LedgerRepo


logger = structlog.get_logger()

# Held for a whole provision or reconcile of one tenant
_provision_locks = KeyedLocks()


class TenantProvisioner:
    """Creates isolated tenant databases with owner-scoped accounts.

    Contains the provisioning sequence and its failure bookkeeping; the
    ledger, cipher and Mongo client are injected.
    """

    def __init__(
        self,
        ledger: LedgerRepo,
        cipher: Annotated[SecretCipher, Depends(get_cipher)],
        client: Annotated[AsyncMongoClient, Depends(get_mongo_client)],
    ) -> None:
        self.ledger = ledger
        self.cipher = cipher
        self.client = client
        self.timeout_seconds = settings.provision_timeout_seconds
        self.settings_collection = settings.settings_collection

    async def provision(
        self,
        tenant_id: str | None,
        username: str | None,
        secret: str | None,
        initial_settings: dict[str, Any] | None = None,
    ) -> TenantCredential:
        """Provision a new tenant.

        Args:
            tenant_id: Tenant id, also used as the database name
            username: Account to create as owner of the tenant database
            secret: Password for that account
            initial_settings: Document stored in the tenant's settings collection

        Returns:
            The ledger row, with status ``active``

        Raises:
            MissingFieldError: If tenant_id, username or secret is empty
            InvalidTenantError: If tenant_id cannot name a database
            TenantExistsError: If the tenant is already in the ledger
            StoreError: If the ledger write fails (nothing was created)
            ProvisionError: If the store side fails after the ledger write
        """
        missing = [
            name
            for name, value in (("tenant_id", tenant_id), ("username", username), ("password", secret))
            if not value
        ]
        if missing:
            raise MissingFieldError(details={"fields": missing})

        ensure_valid_database_name(tenant_id)

        encrypted_secret = self.cipher.encrypt(secret)
        async with _provision_locks(tenant_id):
            try:
                await self.ledger.insert(tenant_id, username, encrypted_secret)
            except ConflictError as e:
                raise TenantExistsError(details={"tenant_id": tenant_id}) from e

            credential = await self._provision_store(
                tenant_id, username, secret, initial_settings or {}, tolerate_existing_user=False
            )
        logger.info("tenant_provisioned", tenant_id=tenant_id, username=username)
        return credential

    async def reconcile(
        self,
        tenant_id: str,
        initial_settings: dict[str, Any] | None = None,
    ) -> TenantCredential:
        """Finish provisioning for a tenant left ``pending`` or ``failed``.

        The stored secret is decrypted and the store side is re-run; an
        account that already exists counts as created and the settings
        document is replaced, so a retry can be repeated safely.

        Raises:
            TenantNotFoundError: If the tenant is not in the ledger
            TenantExistsError: If the tenant is already active
            DecryptionError: If the stored secret cannot be decrypted
            ProvisionError: If the store side fails again
        """
        async with _provision_locks(tenant_id):
            credential = await self.ledger.get(tenant_id)
            if credential is None:
                raise TenantNotFoundError(resource="tenant", resource_id=tenant_id)
            if credential.status == ProvisionStatus.ACTIVE.value:
                raise TenantExistsError(
                    "Tenant is already provisioned",
                    details={"tenant_id": tenant_id},
                )

            secret = self.cipher.decrypt(credential.password)
            credential = await self._provision_store(
                tenant_id,
                credential.username,
                secret,
                initial_settings or {},
                tolerate_existing_user=True,
            )
        logger.info("tenant_reconciled", tenant_id=tenant_id)
        return credential

    async def _provision_store(
        self,
        tenant_id: str,
        username: str,
        secret: str,
        initial_settings: dict[str, Any],
        tolerate_existing_user: bool,
    ) -> TenantCredential:
        """Create the owner account and settings document, then mark active.

        Raises:
            ProvisionError: With ``partial`` set, naming the failed stage
        """
        stage = "create_owner"
        try:
            await asyncio.wait_for(
                self._create_owner(tenant_id, username, secret, tolerate_existing_user),
                timeout=self.timeout_seconds,
            )
            stage = "write_settings"
            await self.client[tenant_id][self.settings_collection].replace_one(
                {"_id": INITIAL_SETTINGS_ID},
                {key: value for key, value in initial_settings.items() if key != "_id"},
                upsert=True,
            )
        except (PyMongoError, TimeoutError) as e:
            error = _partial_failure(tenant_id, stage, str(e) or type(e).__name__)
            await self._mark_failed(tenant_id)
            raise error from e

        try:
            return await self.ledger.set_status(tenant_id, ProvisionStatus.ACTIVE)
        except StoreError as e:
            # Store side is complete; the row stays ``pending`` for reconcile
            raise _partial_failure(
                tenant_id, "activate", str(e.details.get("cause") or e.message)
            ) from e

    async def _create_owner(
        self,
        tenant_id: str,
        username: str,
        secret: str,
        tolerate_existing_user: bool,
    ) -> None:
        """Create an account whose only role is owner of the tenant database."""
        try:
            await self.client[tenant_id].command(
                "createUser",
                username,
                pwd=secret,
                roles=[{"role": "dbOwner", "db": tenant_id}],
            )
        except OperationFailure as e:
            if tolerate_existing_user and e.code == MONGO_USER_EXISTS_CODE:
                logger.info("tenant_owner_exists", tenant_id=tenant_id, username=username)
                return
            raise

        logger.info("tenant_owner_created", tenant_id=tenant_id, username=username)

    async def _mark_failed(self, tenant_id: str) -> None:
        try:
            await self.ledger.set_status(tenant_id, ProvisionStatus.FAILED)
        except StoreError:
            # The row stays ``pending``, which reconcile also accepts
            logger.exception("tenant_status_update_failed", tenant_id=tenant_id)


def _partial_failure(tenant_id: str, stage: str, cause: str) -> ProvisionError:
    """Log a failure that left ledger or store state behind."""
    logger.error("tenant_provision_failed", tenant_id=tenant_id, stage=stage, error=cause)
    return ProvisionError(
        details={
            "tenant_id": tenant_id,
            "stage": stage,
            "partial": True,
            "cause": cause,
        },
    )


# Type alias for dependency injection
ProvisionerSvc = Annotated[TenantProvisioner, Depends(TenantProvisioner)]
