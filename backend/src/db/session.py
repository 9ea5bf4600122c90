"""Database engine, session factory and the per-request unit of work."""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import Settings, get_settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the asyncpg engine with pool sizing from settings."""
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


engine = build_engine(get_settings())

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def get_session_factory() -> async_sessionmaker:
    """
    Return the session factory.

    Aggregations that fan independent reads out over several sessions (the
    data export) open their extra sessions from here.
    """
    return async_session_factory


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """
    Yield the request's database session and own its transaction.

    Services only flush. The request commits once here after the endpoint
    returns, or rolls back everything when it raises, so a failed mutation
    (a quota rejection, a 2FA failure, a conflict) leaves no partial effect.
    The quota row lock taken during the request is released by that commit.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
