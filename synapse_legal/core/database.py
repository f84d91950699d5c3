"""Async SQLAlchemy engine, session factory and database client."""

from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from synapse_legal.core.config import DatabaseSettings
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def create_engine_from_settings(db_settings: DatabaseSettings) -> AsyncEngine:
    """Create the async engine for the configured database URL.

    Args:
        db_settings: Database section of the application settings

    Returns:
        AsyncEngine: Lazily connecting engine
    """
    kwargs: Dict[str, Any] = {"echo": db_settings.echo, "future": True}
    if db_settings.url.startswith("postgresql"):
        kwargs.update(
            pool_size=db_settings.pool_size,
            max_overflow=db_settings.max_overflow,
            # Disable prepared statement cache for PgBouncer compatibility
            connect_args={"statement_cache_size": 0},
        )
    return create_async_engine(db_settings.url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class DatabaseClient:
    """Database client with connection, table creation and health checks."""

    def __init__(self, engine: AsyncEngine):
        """Initialize database client.

        Args:
            engine: SQLAlchemy async engine
        """
        self.engine = engine

    async def connect(self) -> bool:
        """Test database connection."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            LOGGER.info("Database connection successful")
            return True
        except Exception:
            LOGGER.error("Database connection failed", exc_info=True)
            raise

    async def disconnect(self) -> None:
        """Dispose of the engine's connection pool."""
        await self.engine.dispose()
        LOGGER.info("Database connection closed")

    async def create_tables(self) -> None:
        """Create missing tables without touching existing ones."""
        # Registers the models on Base.metadata
        from synapse_legal.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        LOGGER.info("Database tables created/verified successfully")

    async def health_check(self) -> Dict[str, Any]:
        """Check database health."""
        try:
            async with self.engine.connect() as conn:
                val = await conn.scalar(text("SELECT 1"))
            return {
                "status": "healthy",
                "connected": True,
                "backend": self.engine.dialect.name,
                "latency_test": "passed" if val == 1 else "failed",
            }
        except Exception as e:
            LOGGER.error("Database health check failed", extra={"error": str(e)})
            return {"status": "unhealthy", "connected": False, "error": str(e)}


async def init_database(db_client: DatabaseClient) -> None:
    """Connect and create the key-value table if needed.

    Args:
        db_client: Client wrapping the application's engine
    """
    LOGGER.info("Initializing database connection...")
    await db_client.connect()
    await db_client.create_tables()
    LOGGER.info("Database initialization completed")


async def close_database(db_client: DatabaseClient) -> None:
    """Close database connection."""
    try:
        LOGGER.info("Closing database connection...")
        await db_client.disconnect()
    except Exception as e:
        LOGGER.error("Error closing database", exc_info=True, extra={"error": str(e)})
