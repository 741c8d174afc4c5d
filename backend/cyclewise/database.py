"""
Async database wiring: engine, session factory and the declarative base.

Models keep naive UTC datetimes and day-granular `date` keys, so one schema
serves PostgreSQL in production and in-memory SQLite under test. JSON
columns use `JSONType`, which is JSONB on PostgreSQL.
"""
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import JSON, MetaData
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from cyclewise.config import Settings, get_settings

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def engine_options(database_url: str, echo: bool = False) -> dict[str, Any]:
    """Keyword arguments for `create_async_engine` on the given backend."""
    options: dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        # aiosqlite drives the connection from a worker thread
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url:
            # an in-memory database lives only as long as its one connection
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return options


def build_engine(settings: Settings) -> AsyncEngine:
    echo = settings.debug and settings.log_level.upper() == "DEBUG"
    return create_async_engine(settings.database_url, **engine_options(settings.database_url, echo))


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async def create_tables(bind: AsyncEngine) -> None:
    """Create any missing tables; existing ones are left untouched."""
    from cyclewise import models  # noqa: F401  registers every table on Base

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = build_engine(get_settings())
async_session_maker = build_session_maker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session, committed when the handler returns cleanly."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
