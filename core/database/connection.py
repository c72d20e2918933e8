"""
Database connection and session management
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

# Engine will be created lazily in init_db() to avoid connection at import time
engine: Optional[AsyncEngine] = None
async_session_factory: Optional[async_sessionmaker] = None


class DatabaseSession:
    """Context manager for database sessions (async only)"""

    def __init__(self):
        self.session = None

    async def __aenter__(self) -> AsyncSession:
        if async_session_factory is None:
            raise RuntimeError("Database not initialized. Call init_db() first.")
        self.session = async_session_factory()
        return self.session

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            if exc_type is None:
                await self.session.commit()
            else:
                await self.session.rollback()
            await self.session.close()


def get_db() -> DatabaseSession:
    """
    Dependency for getting database session

    Returns:
        DatabaseSession: Async context manager for database sessions
    """
    return DatabaseSession()


def get_session_factory() -> async_sessionmaker:
    """Session factory for the ledger repositories"""
    if async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return async_session_factory


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine with DB-specific parameters"""
    engine_kwargs = {
        "echo": settings.debug,
    }

    if database_url.startswith("postgresql"):
        # Supabase pooler (PgBouncer transaction mode): no client-side pooling, no prepared statements
        from sqlalchemy.pool import NullPool

        is_supabase_pooler = "pooler.supabase.com" in database_url
        engine_kwargs["poolclass"] = NullPool
        engine_kwargs["connect_args"] = {
            "connect_timeout": 30 if is_supabase_pooler else 10,
            "prepare_threshold": None,
        }

    return create_async_engine(database_url, **engine_kwargs)


async def init_db(database_url: Optional[str] = None) -> None:
    """
    Initialize database and create tables
    """
    global engine, async_session_factory

    if engine is None:
        url = database_url or settings.database.effective_url
        engine = build_engine(url)
        async_session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    from core.database.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Ledger tables ready")


async def close_db() -> None:
    """
    Close database connections
    """
    global engine, async_session_factory
    if engine is not None:
        await engine.dispose()
        engine = None
        async_session_factory = None
