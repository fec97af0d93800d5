"""
Database configuration module with async SQLAlchemy engine and session management.

This module provides the database connection, session factory, and utility
functions for database initialization and health checks.
"""
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy import text

from opsdesk.core.config import settings
from opsdesk.core.logging import get_logger
from opsdesk.models import Base


logger = get_logger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    """Engine options for the configured backend (SQLite takes no pool sizing)."""
    options: Dict[str, Any] = {"echo": settings.database_echo}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,  # Verify connections before using them
        )
    return options


# Create async engine
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    **_engine_options(settings.database_url)
)


# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields AsyncSession instances.

    Uncommitted work is discarded when the session closes, so a request that
    fails halfway leaves no partial write behind.

    Example:
        @app.get("/roles")
        async def list_roles(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """
    Initialize the database by creating all tables.

    NOTE: This is for development only.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_db_connection() -> bool:
    """
    Health check function to verify database connectivity.

    Returns:
        bool: True if connection is successful, False otherwise.
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("database_connection_check_failed", error=str(e))
        return False


async def dispose_engine() -> None:
    """
    Dispose of the database engine and close all connections.

    Call this during application shutdown.
    """
    await engine.dispose()
