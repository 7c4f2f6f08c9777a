"""
Pytest configuration and fixtures.
"""
from decimal import Decimal
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool

from emi_collection.api.main import create_app
from emi_collection.config import Settings
from emi_collection.database.connection import Database
from emi_collection.database.models import Customer, Payment
from emi_collection.database.seed import seed_demo_data


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        app_name="emi-collection-test",
        app_env="test",
        log_level="DEBUG",
    )


@pytest_asyncio.fixture
async def database(tmp_path: Any) -> AsyncGenerator[Database, Any]:
    """Empty schema in a throwaway SQLite file."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'emi_test.db'}", poolclass=NullPool)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def seeded_database(database: Database) -> Database:
    """Database holding the five demo customers and their payments."""
    async with database.session_factory() as session:
        await seed_demo_data(session)
    return database


@pytest_asyncio.fixture
async def db_session(seeded_database: Database) -> AsyncGenerator[AsyncSession, Any]:
    """Session against the seeded database."""
    async with seeded_database.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(
    test_settings: Settings, seeded_database: Database
) -> AsyncGenerator[AsyncClient, Any]:
    """Create test HTTP client."""
    app = create_app(settings=test_settings, database=seeded_database)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def read_emi_due(seeded_database: Database) -> Callable[[str], Awaitable[Decimal]]:
    """Read an account's due balance through a fresh session."""

    async def _read(account_number: str) -> Decimal:
        async with seeded_database.session_factory() as session:
            return await session.scalar(
                select(Customer.emi_due).where(Customer.account_number == account_number)
            )

    return _read


@pytest.fixture
def count_payments(seeded_database: Database) -> Callable[..., Awaitable[int]]:
    """Count payment rows through a fresh session."""

    async def _count(account_number: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(Payment)
        if account_number is not None:
            stmt = stmt.where(Payment.account_number == account_number)
        async with seeded_database.session_factory() as session:
            return await session.scalar(stmt)

    return _count
