import os

# must be set before app.core.config is imported
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.crud.user import register_user
from app.db.database import get_db
from app.main import app as fastapi_app


@pytest_asyncio.fixture(scope="function")
async def async_test_engine():
    """Fresh in-memory database for each test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(async_test_engine):
    return sessionmaker(
        bind=async_test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory):
    """API client whose requests run against the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_user(test_db):
    return await register_user(
        test_db,
        email="alice@x.com",
        username="alice",
        display_name="Alice",
        password="alice-password"
    )


@pytest_asyncio.fixture(scope="function")
async def other_user(test_db):
    return await register_user(
        test_db,
        email="bob@x.com",
        username="bob",
        display_name="Bob",
        password="bob-password"
    )


@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {user.api_token}"}
    return _headers
