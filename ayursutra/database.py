"""Database configuration and connection management."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import create_engine, pool, text
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ayursutra.config import settings

# Convert sync PostgreSQL URL to async
DATABASE_URL = settings.database_url.replace("postgresql://", "postgresql+asyncpg://")


def _engine_options(url: str) -> dict[str, Any]:
    """Pooling options; SQLite (local dev and tests) gets the driver defaults."""
    if not url.startswith("postgresql"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {
                "application_name": settings.app_name,
            },
        },
    }


# Create async engine with connection pooling
engine: AsyncEngine = create_async_engine(
    DATABASE_URL,
    echo=settings.debug,
    **_engine_options(DATABASE_URL),
)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_sync_engine() -> Engine:
    """Sync engine for Alembic migrations."""
    return create_engine(
        settings.database_url.replace("+asyncpg", "").replace("+aiosqlite", ""),
        poolclass=pool.NullPool,
    )


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
