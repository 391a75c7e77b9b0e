"""Pytest configuration for all tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dataplayground.core.config import Settings
from dataplayground.infrastructure.auth import JWTService
from dataplayground.infrastructure.persistence import models  # noqa: F401
from dataplayground.infrastructure.persistence.database import (
    Base,
    DatabaseManager,
    json_serializer,
)

TEST_SECRET_KEY = "test-secret-key-with-at-least-32-characters"
TEST_PASSWORD = "password123"


@pytest.fixture
def settings() -> Settings:
    """Settings for tests, isolated from any .env file."""
    return Settings(
        _env_file=None,
        environment="testing",
        secret_key=TEST_SECRET_KEY,
        database_url="sqlite+aiosqlite:///:memory:",
        log_level="WARNING",
    )


@pytest.fixture
def jwt_service(settings: Settings) -> JWTService:
    return JWTService(
        secret_key=settings.secret_key,
        access_token_expire_minutes=settings.access_token_expire_minutes,
    )


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite engine with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        json_serializer=json_serializer,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def app(settings: Settings, engine: AsyncEngine):
    """Application wired to the in-memory test database."""
    from dataplayground.infrastructure.api.app import create_app

    return create_app(settings, db=DatabaseManager(settings, engine=engine))


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client for the application."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register_user(client: AsyncClient):
    """Register a user through the API and return (headers, user)."""

    async def _register(username: str, email: str, password: str = TEST_PASSWORD):
        response = await client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]

    return _register


@pytest_asyncio.fixture
async def alice(register_user):
    return await register_user("alice", "alice@example.com")


@pytest_asyncio.fixture
async def bob(register_user):
    return await register_user("bob", "bob@example.com")


@pytest_asyncio.fixture
async def carol(register_user):
    return await register_user("carol", "carol@example.com")
