"""Database connection and session management for ModelCatalog.

Provides async SQLAlchemy session management with connection pooling.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from modelcatalog.config import get_config
from modelcatalog.db.models import Base

# Global engine instance
_engine: AsyncEngine | None = None
_session_factory: sessionmaker | None = None


def create_engine_for_url(url: str, echo: bool = False, **pool_kwargs) -> AsyncEngine:
    """Create an async engine, dropping pool arguments SQLite does not accept."""
    engine_kwargs = {"echo": echo}

    if "sqlite" not in url.lower():
        engine_kwargs.update(pool_kwargs)
        engine_kwargs.update({
            "pool_pre_ping": True,  # Verify connections before using
            "pool_recycle": 3600,  # Recycle connections after 1 hour
        })

    return create_async_engine(url, **engine_kwargs)


def make_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
    )


def get_engine() -> AsyncEngine:
    """Get or create singleton async engine.

    Returns:
        AsyncEngine: SQLAlchemy async engine

    Raises:
        KeyError: If DATABASE_URL is not configured
    """
    global _engine

    if _engine is None:
        db_config = get_config().db
        _engine = create_engine_for_url(
            db_config.url,
            echo=db_config.echo,
            pool_size=db_config.pool_size,
            max_overflow=db_config.pool_max_overflow,
            pool_timeout=db_config.pool_timeout,
        )

    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create session factory.

    Returns:
        sessionmaker: Session factory for creating AsyncSession instances
    """
    global _session_factory

    if _session_factory is None:
        _session_factory = make_session_factory(get_engine())

    return _session_factory


@asynccontextmanager
async def get_session(
    session_factory: sessionmaker | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Get async database session (context manager).

    Commits on success, rolls back on error.

    Usage:
        async with get_session() as session:
            result = await session.execute(query)

    Args:
        session_factory: Factory to use instead of the global one

    Yields:
        AsyncSession: SQLAlchemy async session
    """
    factory = session_factory or get_session_factory()
    session = factory()

    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(engine: AsyncEngine | None = None, drop: bool = False) -> None:
    """Initialize database (create all tables).

    Args:
        engine: Engine to use instead of the global one
        drop: Drop existing tables first
    """
    engine = engine or get_engine()

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database engine and dispose connections.

    Call this on application shutdown.
    """
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
