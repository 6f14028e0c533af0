"""Unit tests for TenantProvisioner.

The ledger is real (temporary SQLite); the Mongo client is a mock.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from dynamic_api.core.errors import (
    InvalidTenantError,
    MissingFieldError,
    ProvisionError,
    StoreError,
    TenantExistsError,
    TenantNotFoundError,
)
from dynamic_api.modules.tenants.models import ProvisionStatus
from dynamic_api.modules.tenants.services import TenantProvisioner


@pytest.fixture
def provisioner(ledger, cipher, mongo_client) -> TenantProvisioner:
    """Provisioner wired to the test ledger and mock store."""
    return TenantProvisioner(ledger=ledger, cipher=cipher, client=mongo_client)


class TestProvision:
    """Tests for TenantProvisioner.provision."""

    @pytest.mark.asyncio
    async def test_provision_success(self, provisioner, ledger, cipher, mongo_client):
        """Ledger row, owner account and settings document are all created."""
        credential = await provisioner.provision("acme", "owner", "s3cret", {"theme": "dark"})

        assert credential.status == ProvisionStatus.ACTIVE.value
        assert cipher.decrypt(credential.password) == "s3cret"

        mongo_client.__getitem__.assert_any_call("acme")
        mongo_client.database.command.assert_awaited_once_with(
            "createUser",
            "owner",
            pwd="s3cret",
            roles=[{"role": "dbOwner", "db": "acme"}],
        )
        mongo_client.database.__getitem__.assert_called_with("settings")
        mongo_client.collection.replace_one.assert_awaited_once_with(
            {"_id": "initial"}, {"theme": "dark"}, upsert=True
        )

        stored = await ledger.get("acme")
        assert stored.status == ProvisionStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_absent_settings_become_empty_document(self, provisioner, mongo_client):
        """No initial settings still writes one document."""
        await provisioner.provision("acme", "owner", "s3cret")

        mongo_client.collection.replace_one.assert_awaited_once_with(
            {"_id": "initial"}, {}, upsert=True
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("tenant_id", "username", "secret", "missing"),
        [
            (None, "owner", "s3cret", ["tenant_id"]),
            ("acme", "", "s3cret", ["username"]),
            ("acme", "owner", None, ["password"]),
            ("", None, "", ["tenant_id", "username", "password"]),
        ],
    )
    async def test_missing_fields(
        self, provisioner, ledger, mongo_client, tenant_id, username, secret, missing
    ):
        """Empty required fields are rejected before anything is written."""
        with pytest.raises(MissingFieldError) as exc_info:
            await provisioner.provision(tenant_id, username, secret)

        assert exc_info.value.message == "Missing required fields"
        assert exc_info.value.details["fields"] == missing
        mongo_client.database.command.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_illegal_tenant_id(self, provisioner, ledger):
        """Tenant ids that cannot name a database are rejected."""
        with pytest.raises(InvalidTenantError):
            await provisioner.provision("acme.prod", "owner", "s3cret")

        assert await ledger.exists("acme.prod") is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tenant_id", ["admin", "local", "config", "ADMIN"])
    async def test_reserved_tenant_id(self, provisioner, ledger, mongo_client, tenant_id):
        """The server's own databases are never provisioned."""
        with pytest.raises(InvalidTenantError, match="reserved"):
            await provisioner.provision(tenant_id, "owner", "s3cret")

        assert await ledger.exists(tenant_id) is False
        mongo_client.database.command.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_is_rejected(self, provisioner, mongo_client):
        """A second provision for a tenant fails with 400."""
        await provisioner.provision("acme", "owner", "s3cret")

        with pytest.raises(TenantExistsError) as exc_info:
            await provisioner.provision("acme", "owner", "s3cret")

        assert exc_info.value.message == "Database already exists"
        assert exc_info.value.status_code == 400
        assert mongo_client.database.command.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicates(self, provisioner, ledger, mongo_client):
        """Exactly one of several racing requests provisions the tenant."""
        results = await asyncio.gather(
            *(provisioner.provision("acme", "owner", "s3cret") for _ in range(4)),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 3
        assert all(isinstance(f, TenantExistsError) for f in failures)
        assert mongo_client.database.command.await_count == 1
        assert (await ledger.get("acme")).status == ProvisionStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_ledger_failure_is_not_partial(self, cipher, mongo_client):
        """A ledger error before the row exists is a plain StoreError."""
        ledger = AsyncMock()
        ledger.insert.side_effect = StoreError(
            "Error occurred during database creation", details={"partial": False}
        )
        provisioner = TenantProvisioner(ledger=ledger, cipher=cipher, client=mongo_client)

        with pytest.raises(StoreError) as exc_info:
            await provisioner.provision("acme", "owner", "s3cret")

        assert not isinstance(exc_info.value, ProvisionError)
        mongo_client.database.command.assert_not_awaited()


class TestPartialFailure:
    """Tests for failures after the ledger row is written."""

    @pytest.mark.asyncio
    async def test_owner_creation_failure(self, provisioner, ledger, mongo_client):
        """A rejected createUser marks the row failed."""
        mongo_client.database.command.side_effect = OperationFailure("not authorized", code=13)

        with pytest.raises(ProvisionError) as exc_info:
            await provisioner.provision("acme", "owner", "s3cret")

        details = exc_info.value.details
        assert details["partial"] is True
        assert details["stage"] == "create_owner"
        assert details["tenant_id"] == "acme"
        assert "not authorized" in details["cause"]
        assert (await ledger.get("acme")).status == ProvisionStatus.FAILED.value
        mongo_client.collection.replace_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_settings_write_failure(self, provisioner, ledger, mongo_client):
        """A failed settings write is reported with its stage."""
        mongo_client.collection.replace_one.side_effect = ServerSelectionTimeoutError("down")

        with pytest.raises(ProvisionError) as exc_info:
            await provisioner.provision("acme", "owner", "s3cret")

        assert exc_info.value.details["stage"] == "write_settings"
        assert exc_info.value.message == "Error occurred during initialization"
        assert (await ledger.get("acme")).status == ProvisionStatus.FAILED.value

    @pytest.mark.asyncio
    async def test_admin_call_timeout(self, provisioner, ledger, mongo_client):
        """A hung admin call is cut off by the provisioning timeout."""

        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        mongo_client.database.command.side_effect = hang
        provisioner.timeout_seconds = 0.01

        with pytest.raises(ProvisionError) as exc_info:
            await provisioner.provision("acme", "owner", "s3cret")

        assert exc_info.value.details["cause"] == "TimeoutError"
        assert (await ledger.get("acme")).status == ProvisionStatus.FAILED.value

    @pytest.mark.asyncio
    async def test_activation_failure(self, provisioner, ledger, mongo_client, monkeypatch):
        """A ledger error after the store side is a partial failure at activate."""
        set_status = ledger.set_status

        async def refuse_active(tenant_id, status):
            if status == ProvisionStatus.ACTIVE:
                raise StoreError(
                    "Error occurred while updating tenant status",
                    details={"cause": "database is locked", "tenant_id": tenant_id},
                )
            return await set_status(tenant_id, status)

        monkeypatch.setattr(ledger, "set_status", refuse_active)

        with pytest.raises(ProvisionError) as exc_info:
            await provisioner.provision("acme", "owner", "s3cret")

        details = exc_info.value.details
        assert details["stage"] == "activate"
        assert details["partial"] is True
        assert details["cause"] == "database is locked"
        assert exc_info.value.status_code == 500
        assert (await ledger.get("acme")).status == ProvisionStatus.PENDING.value
        mongo_client.collection.replace_one.assert_awaited_once()

        monkeypatch.setattr(ledger, "set_status", set_status)
        mongo_client.database.command.side_effect = OperationFailure(
            "User owner@acme already exists", code=51003
        )

        credential = await provisioner.reconcile("acme")

        assert credential.status == ProvisionStatus.ACTIVE.value
        assert mongo_client.collection.replace_one.await_count == 2
        for call in mongo_client.collection.replace_one.await_args_list:
            assert call.args[0] == {"_id": "initial"}


class TestReconcile:
    """Tests for TenantProvisioner.reconcile."""

    @pytest.mark.asyncio
    async def test_reconcile_failed_tenant(self, provisioner, ledger, mongo_client):
        """A failed tenant is finished with its stored credentials."""
        mongo_client.collection.replace_one.side_effect = ServerSelectionTimeoutError("down")
        with pytest.raises(ProvisionError):
            await provisioner.provision("acme", "owner", "s3cret")

        # The account was created on the first attempt
        mongo_client.collection.replace_one.side_effect = None
        mongo_client.database.command.side_effect = OperationFailure(
            "User owner@acme already exists", code=51003
        )

        credential = await provisioner.reconcile("acme", {"theme": "dark"})

        assert credential.status == ProvisionStatus.ACTIVE.value
        mongo_client.database.command.assert_awaited_with(
            "createUser",
            "owner",
            pwd="s3cret",
            roles=[{"role": "dbOwner", "db": "acme"}],
        )
        mongo_client.collection.replace_one.assert_awaited_with(
            {"_id": "initial"}, {"theme": "dark"}, upsert=True
        )

    @pytest.mark.asyncio
    async def test_existing_user_fails_first_provision(self, provisioner, mongo_client):
        """Outside reconciliation an existing account is an error."""
        mongo_client.database.command.side_effect = OperationFailure(
            "User owner@acme already exists", code=51003
        )

        with pytest.raises(ProvisionError):
            await provisioner.provision("acme", "owner", "s3cret")

    @pytest.mark.asyncio
    async def test_reconcile_pending_tenant(self, provisioner, ledger, cipher):
        """A row stuck in pending can be reconciled."""
        await ledger.insert("acme", "owner", cipher.encrypt("s3cret"))

        credential = await provisioner.reconcile("acme")

        assert credential.status == ProvisionStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_reconcile_active_tenant(self, provisioner):
        """Active tenants have nothing to reconcile."""
        await provisioner.provision("acme", "owner", "s3cret")

        with pytest.raises(TenantExistsError, match="already provisioned"):
            await provisioner.reconcile("acme")

    @pytest.mark.asyncio
    async def test_reconcile_unknown_tenant(self, provisioner):
        """Unknown tenants are 404."""
        with pytest.raises(TenantNotFoundError) as exc_info:
            await provisioner.reconcile("nobody")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_concurrent_reconciles(self, provisioner, ledger, mongo_client):
        """Racing retries run the store side once."""
        mongo_client.collection.replace_one.side_effect = ServerSelectionTimeoutError("down")
        with pytest.raises(ProvisionError):
            await provisioner.provision("acme", "owner", "s3cret")

        mongo_client.collection.replace_one.reset_mock(side_effect=True)
        mongo_client.database.command.reset_mock()
        mongo_client.database.command.side_effect = OperationFailure(
            "User owner@acme already exists", code=51003
        )

        results = await asyncio.gather(
            provisioner.reconcile("acme", {"theme": "dark"}),
            provisioner.reconcile("acme", {"theme": "dark"}),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], TenantExistsError)
        assert mongo_client.database.command.await_count == 1
        mongo_client.collection.replace_one.assert_awaited_once_with(
            {"_id": "initial"}, {"theme": "dark"}, upsert=True
        )
        assert (await ledger.get("acme")).status == ProvisionStatus.ACTIVE.value

    @pytest.mark.asyncio
    async def test_settings_id_is_not_overridden(self, provisioner, mongo_client):
        """A caller-supplied _id does not create a second settings document."""
        await provisioner.provision("acme", "owner", "s3cret", {"_id": "other", "theme": "dark"})

        mongo_client.collection.replace_one.assert_awaited_once_with(
            {"_id": "initial"}, {"theme": "dark"}, upsert=True
        )
