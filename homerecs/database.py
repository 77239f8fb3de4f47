"""Async SQLAlchemy engine and session factory for the user data store."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from homerecs.config import settings
from homerecs.domain.models import Base


def build_session_factory(
    database_url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an engine and a session factory bound to it."""
    engine = create_async_engine(database_url, pool_pre_ping=True)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    return engine, factory


engine, async_session_factory = build_session_factory(settings.database_url)


async def init_models(bind: AsyncEngine = engine) -> None:
    """Create tables that do not exist yet (local development and tests)."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

