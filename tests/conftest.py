"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo.results import InsertManyResult, UpdateResult
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from dynamic_api.core.crypto import SecretCipher, get_cipher
from dynamic_api.core.database import (
    create_ledger_engine,
    create_session_factory,
    get_session_factory,
    init_ledger,
)
from dynamic_api.core.documents import get_mongo_client
from dynamic_api.main import create_app

# Import models to ensure they're registered with Base.metadata
from dynamic_api.modules.tenants.models import TenantCredential  # noqa: F401
from dynamic_api.modules.tenants.repos import CredentialLedger


TEST_ENCRYPTION_KEY = b"0123456789abcdef0123456789abcdef"


# ============================================================
# Ledger fixtures
# ============================================================


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a ledger engine on a throwaway SQLite file."""
    engine = create_ledger_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.sqlite'}")
    await init_ledger(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test ledger."""
    return create_session_factory(engine)


@pytest.fixture
def ledger(session_factory: async_sessionmaker[AsyncSession]) -> CredentialLedger:
    """Credential ledger backed by the test database."""
    return CredentialLedger(session_factory)


# ============================================================
# Store fixtures
# ============================================================


@pytest.fixture
def cipher() -> SecretCipher:
    """Cipher with a fixed key so tokens decrypt across fixtures."""
    return SecretCipher(TEST_ENCRYPTION_KEY)


@pytest.fixture
def mongo_client() -> MagicMock:
    """Stand-in for AsyncMongoClient.

    Every ``client[db]`` returns ``mongo_client.database`` and every
    ``client[db][name]`` returns ``mongo_client.collection``, so tests
    can configure and inspect a single database and collection.
    """
    client = MagicMock(name="AsyncMongoClient")
    database = MagicMock(name="AsyncDatabase")
    collection = MagicMock(name="AsyncCollection")

    client.__getitem__.return_value = database
    database.__getitem__.return_value = collection

    database.command = AsyncMock(return_value={"ok": 1.0})
    client.admin.command = AsyncMock(return_value={"ok": 1.0})

    collection.replace_one = AsyncMock(
        return_value=UpdateResult({"n": 1, "nModified": 0, "ok": 1.0}, acknowledged=True)
    )
    collection.insert_many = AsyncMock(
        side_effect=lambda documents: InsertManyResult(
            [ObjectId() for _ in documents], acknowledged=True
        )
    )
    collection.find_one = AsyncMock(return_value=None)

    client.database = database
    client.collection = collection
    return client


# ============================================================
# Application fixtures
# ============================================================


@pytest.fixture
async def app(
    session_factory: async_sessionmaker[AsyncSession],
    mongo_client: MagicMock,
    cipher: SecretCipher,
):
    """Create test application instance.

    ASGITransport does not run the lifespan, so every resource the
    lifespan would prepare is supplied through dependency overrides.
    """
    application = create_app()

    application.dependency_overrides[get_session_factory] = lambda: session_factory
    application.dependency_overrides[get_mongo_client] = lambda: mongo_client
    application.dependency_overrides[get_cipher] = lambda: cipher

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
