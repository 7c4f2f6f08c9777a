"""Database connection and session management."""
from collections.abc import AsyncGenerator
from typing import Any

import structlog
from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from emi_collection.config import Settings
from emi_collection.database.models import Base

logger = structlog.get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """SQLite only enforces ON DELETE CASCADE with this pragma set per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owner of the async engine (and therefore the connection pool).

    Built once per process from settings, handed to the application through
    ``app.state`` and disposed at shutdown. Tests build their own instance
    against a throwaway database.
    """

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        """
        Create the engine and session factory.

        Args:
            url: SQLAlchemy async connection URL
            **engine_kwargs: Passed through to ``create_async_engine``
        """
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """
        Build a pooled database from application settings.

        Args:
            settings: Application settings

        Returns:
            Database: Configured database with a bounded pool
        """
        url = settings.sqlalchemy_url
        engine_kwargs: dict[str, Any] = {"echo": settings.database_echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_timeout=settings.database_pool_timeout,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=3600,  # Recycle connections after 1 hour
            )
        return cls(url, **engine_kwargs)

    async def create_all(self) -> None:
        """
        Initialize database tables.

        Creates all tables defined in models if they don't exist.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_created")

    async def ping(self) -> None:
        """Run ``SELECT 1`` through the pool; raises on failure."""
        async with self.session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()

    async def dispose(self) -> None:
        """Close database connections and dispose of the engine."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, Any]:
    """
    Dependency for getting database sessions.

    The session is closed on every exit path, which returns its connection
    to the pool and rolls back anything left uncommitted. Handlers that
    write commit explicitly.

    Yields:
        AsyncSession: Database session

    Example:
        @app.get("/customers")
        async def list_customers(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
