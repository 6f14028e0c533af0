"""Async session management for the credential ledger."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from dynamic_api.config import settings
from dynamic_api.core.database.base import Base


def create_ledger_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the ledger database.

    Args:
        url: SQLAlchemy async URL (sqlite+aiosqlite or postgresql+asyncpg)
        echo: Log emitted SQL

    Returns:
        The configured engine
    """
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,  # Verify connections before use
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Process-wide engine; connections are opened lazily
async_engine = create_ledger_engine(settings.ledger_database_url, settings.ledger_echo)
async_session_factory = create_session_factory(async_engine)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency that provides the ledger session factory.

    Each ledger operation opens and commits its own session, so the
    factory is injected rather than a request-scoped session.
    """
    return async_session_factory


async def init_ledger(engine: AsyncEngine = async_engine) -> None:
    """Create ledger tables that do not exist yet.

    Models must be imported before this runs so they are registered
    on ``Base.metadata``.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_ledger(engine: AsyncEngine = async_engine) -> None:
    """Dispose of the ledger connection pool.

    Call this during application shutdown.
    """
    await engine.dispose()
