"""
Database connection management.

Builds the async SQLAlchemy engine and session factory that make up the
store handle owned by a SegmentEngine. Nothing here is cached at module
level; every caller constructs and disposes its own handle.

Dependencies: sqlalchemy, segment_index.configs
System role: Database connection lifecycle management
"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from segment_index.boundary.db.base import Base
from segment_index.configs.database import DatabaseSettings


def create_engine_from_settings(db_config: DatabaseSettings) -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    PostgreSQL URLs get a sized pool with pool_pre_ping=True to detect
    stale connections early. In-memory SQLite URLs share one connection
    through StaticPool so every session sees the same database.

    Args:
        db_config: Database settings

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid or engine creation fails

    Usage:
        engine = create_engine_from_settings(settings.database)
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    """
    url = db_config.async_database_url

    if db_config.is_sqlite:
        kwargs: dict = {"echo": db_config.echo_sql}
        if ":memory:" in url or url.endswith("sqlite+aiosqlite://"):
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        return create_async_engine(url, **kwargs)

    return create_async_engine(
        url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create async session factory for database operations.

    autoflush=False keeps transaction control explicit; expire_on_commit=False
    lets ORM rows be converted to schemas after the session commits.

    Args:
        engine: Async engine the sessions bind to

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = create_session_factory(engine)
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create every registered table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(engine: AsyncEngine) -> None:
    """Drop every registered table."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
