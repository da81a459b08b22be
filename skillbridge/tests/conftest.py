"""
Shared fixtures: in-memory database, seeded catalog and an API client
with the database and grader dependencies overridden.
"""
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from skillbridge.database import get_db
from skillbridge.main import app
from skillbridge.orm.base import Base
from skillbridge.routes.deps import get_simulation_grader
from skillbridge.security.auth import create_access_token
from skillbridge.security.rate_limit import limiter
from skillbridge.services.catalog_service import seed_catalog
from skillbridge.services.grader import LocalGrader

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_session(db_session: AsyncSession) -> AsyncSession:
    await seed_catalog(db_session)
    return db_session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """API client against a seeded in-memory database and the local grader."""
    async with session_factory() as session:
        await seed_catalog(session)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_simulation_grader] = lambda: LocalGrader()
    limiter.enabled = False

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    limiter.enabled = True
    app.dependency_overrides.clear()


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def alice_headers() -> dict:
    return auth_headers("alice")


@pytest.fixture
def bob_headers() -> dict:
    return auth_headers("bob")


@pytest.fixture
def carol_headers() -> dict:
    return auth_headers("carol")
