"""SQLAlchemy async engine and session management for the document store."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def make_engine(database_uri: str) -> AsyncEngine:
    """Create the async engine; pooling options only apply to server databases."""
    kw: dict = {"echo": False}
    if "sqlite" not in database_uri:
        kw.update(pool_size=20, max_overflow=10, pool_pre_ping=True)
    return create_async_engine(database_uri, **kw)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine):
    """Create all tables."""
    async with engine.begin() as conn:
        from bujo.store.models import Document  # noqa
        await conn.run_sync(Base.metadata.create_all)
