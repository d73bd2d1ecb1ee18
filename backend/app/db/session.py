"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support for PostgreSQL (and SQLite for local runs).
"""

from contextlib import asynccontextmanager
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from backend.app.core.config import settings


def serialize_sqlite_writes(async_engine: AsyncEngine) -> AsyncEngine:
    """
    Make every SQLite transaction start with BEGIN IMMEDIATE.

    The driver's implicit deferred BEGIN lets two connections read first and
    then deadlock upgrading to a write lock. Taking the write lock up front
    serializes transactions; waiting writers block on the busy timeout.
    """
    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return async_engine


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine with an explicit isolation policy."""
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        return serialize_sqlite_writes(
            create_async_engine(
                database_url,
                echo=settings.db_echo,
                connect_args={"timeout": 30},
            )
        )

    engine_kwargs = {
        "echo": settings.db_echo,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }
    if settings.db_isolation_level:
        engine_kwargs["isolation_level"] = settings.db_isolation_level

    return create_async_engine(database_url, **engine_kwargs)


# Create async engine
engine = build_engine(settings.database_url)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    Yields an async database session and ensures it's properly closed.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def unit_of_work(db: AsyncSession):
    """
    Scope a transaction on an injected session.

    Commits when the block exits normally and rolls back on any exception,
    which is then re-raised to the caller.
    """
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise
