"""
Storefront Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine lifecycle, declarative base and the per-request
       session dependency.
Why:   The engine is a process-wide resource: it is opened once at startup,
       stored on `app.state`, and disposed on shutdown. Handlers receive
       sessions through FastAPI's dependency injection, never through a
       module-level global.
How:   `create_engine_and_factory()` builds the pooled engine and session
       factory; `get_db_session()` pulls the factory off the running app.
"""

from typing import AsyncGenerator, Tuple

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from storefront.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object, which Alembic reads for migrations.
    """
    pass


def create_engine_and_factory(
    config: Settings,
) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Build the async engine and its session factory.

    Called once from the application lifespan.

    Pool configuration:
        pool_size / max_overflow: bounded connection usage under load
        pool_pre_ping:            catches stale connections after a DB restart
        pool_recycle=3600:        recycles connections every hour
    """
    engine = create_async_engine(
        config.database_url,
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_pre_ping=config.db_pool_pre_ping,
        pool_recycle=3600,
        echo=config.log_level == "DEBUG",
    )
    # expire_on_commit=False: response models read attributes after commit
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, session_factory


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory stored on app.state
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
