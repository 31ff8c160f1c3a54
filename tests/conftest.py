"""
Pytest configuration and fixtures.

Root-level fixtures shared across all test modules.
"""

import os

# Set test environment before the application reads its settings
os.environ["APP_ENV"] = "test"
os.environ["DEBUG"] = "true"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from qualinex.main import app
from qualinex.core.database import get_db
from qualinex.core.security import get_password_hash
from qualinex.models.user import User, UserRole
from qualinex.models.warranty import Warranty
from qualinex.services.warranty import create_warranty
from tests.helpers import TEST_PASSWORD, warranty_payload

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# === Marker Configuration ===

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "admin: Tests requiring admin authentication")
    config.addinivalue_line("markers", "non_admin: Tests that don't require admin authentication")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "slow: Tests that take longer to run")


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test module name."""
    for item in items:
        name = item.fspath.basename
        if name.endswith("_api.py") or name == "test_auth.py":
            item.add_marker(pytest.mark.api)
        if name.startswith("test_admin"):
            item.add_marker(pytest.mark.admin)


# === Core Database Fixtures ===


@pytest_asyncio.fixture
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# === Users ===


async def _add_user(session: AsyncSession, user: User) -> User:
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def _local(email: str, full_name: str, role: UserRole = UserRole.USER, **kwargs) -> User:
    return User.local(
        email=email,
        full_name=full_name,
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role,
        **kwargs,
    )


@pytest_asyncio.fixture
async def admin_user(test_db: AsyncSession) -> User:
    """Create admin user for tests."""
    return await _add_user(test_db, _local("admin@example.com", "Test Admin", UserRole.ADMIN))


@pytest_asyncio.fixture
async def second_admin(test_db: AsyncSession) -> User:
    return await _add_user(test_db, _local("admin2@example.com", "Second Admin", UserRole.ADMIN))


@pytest_asyncio.fixture
async def inactive_admin(test_db: AsyncSession) -> User:
    return await _add_user(
        test_db,
        _local("retired@example.com", "Retired Admin", UserRole.ADMIN, is_active=False),
    )


@pytest_asyncio.fixture
async def regular_user(test_db: AsyncSession) -> User:
    """Create regular user for tests."""
    return await _add_user(test_db, _local("user@example.com", "Test User"))


@pytest_asyncio.fixture
async def other_user(test_db: AsyncSession) -> User:
    return await _add_user(test_db, _local("other@example.com", "Other User"))


@pytest_asyncio.fixture
async def federated_user(test_db: AsyncSession) -> User:
    return await _add_user(
        test_db,
        User.federated(email="fed@example.com", full_name="Federated User", external_id="google-123"),
    )


# === Tokens ===


async def _login(client: AsyncClient, email: str) -> str:
    response = await client.post(
        "/api/v1/auth/login",
        data={"username": email, "password": TEST_PASSWORD},
    )
    return response.json()["access_token"]


@pytest_asyncio.fixture
async def admin_token(client: AsyncClient, admin_user: User) -> str:
    """Get admin auth token."""
    return await _login(client, "admin@example.com")


@pytest_asyncio.fixture
async def user_token(client: AsyncClient, regular_user: User) -> str:
    """Get regular user auth token."""
    return await _login(client, "user@example.com")


@pytest_asyncio.fixture
async def other_token(client: AsyncClient, other_user: User) -> str:
    return await _login(client, "other@example.com")


# === Warranties ===


@pytest_asyncio.fixture
async def user_warranty(test_db: AsyncSession, regular_user: User) -> Warranty:
    """A pending warranty owned by the regular user."""
    created = await create_warranty(test_db, regular_user, warranty_payload())
    return await test_db.get(Warranty, created.id)
