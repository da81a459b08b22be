"""
skillbridge/database.py
Database configuration
"""
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from skillbridge.config import settings
from skillbridge.orm.base import Base
import skillbridge.orm  # registers all models on Base.metadata

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL


def build_engine(database_url: str):
    """Create an async engine with pool settings suited to the backend."""
    if ":memory:" in database_url:
        # One shared connection, otherwise every checkout sees an empty database
        return create_async_engine(
            database_url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    if "sqlite" in database_url.lower():
        return create_async_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
            pool_timeout=30,
            connect_args={
                "timeout": 30.0,   # SQLite busy timeout in seconds
            }
        )

    # PostgreSQL/MySQL
    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=20,
        max_overflow=30,
        pool_timeout=30,
        pool_recycle=3600,
    )


engine = build_engine(DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db():
    """Dependency for getting async database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """Create tables that don't exist yet."""
    logger.info("Initializing database...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")


async def close_db():
    """Close database connection"""
    await engine.dispose()
    logger.info("Database connection closed")
