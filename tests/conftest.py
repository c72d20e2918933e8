"""
Pytest configuration and shared fixtures
"""
import os

os.environ.setdefault("TESTING", "true")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.database.models import Base
from core.services.ledger.transaction_history import TransactionHistoryRepository
from core.services.ledger.withdraw_history import WithdrawHistoryRepository
from tests.fixtures.mocks import mock_chain, mock_sender  # noqa: F401


# In-memory ledger shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory ledger database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,  # Disable SQL logging in tests
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def transaction_repo(session_factory) -> TransactionHistoryRepository:
    return TransactionHistoryRepository(session_factory)


@pytest.fixture
def withdraw_repo(session_factory) -> WithdrawHistoryRepository:
    return WithdrawHistoryRepository(session_factory)
