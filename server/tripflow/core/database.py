"""Database configuration and async session management."""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from .config import settings


class Base(DeclarativeBase):
    """Declarative base for all models."""


def enable_sqlite_transactions(engine: AsyncEngine) -> None:
    """
    Make SQLite honour transactions and SAVEPOINTs.

    The sqlite3 driver defers BEGIN until the first DML statement, which breaks
    nested transactions. Taking over BEGIN ourselves (and making it IMMEDIATE)
    serializes writers on the database lock, which is the row-lock substitute
    capacity and roster updates rely on when running against SQLite.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_for(database_url: str, echo: bool = False, in_memory_pool: bool = True) -> AsyncEngine:
    """
    Build an async engine, applying SQLite specific setup when needed.

    Args:
        database_url: SQLAlchemy async database URL
        echo: Whether to echo SQL statements
        in_memory_pool: Use a single shared connection for SQLite databases

    Returns:
        AsyncEngine: Configured engine
    """
    is_sqlite = database_url.startswith("sqlite")
    kwargs = {"echo": echo, "future": True}
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if in_memory_pool:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_async_engine(database_url, **kwargs)
    if is_sqlite:
        enable_sqlite_transactions(engine)
    return engine


# Create async engine
engine = create_engine_for(settings.database_url, echo=settings.debug)

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# Alias for FastAPI dependency injection
get_db = get_async_session


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
