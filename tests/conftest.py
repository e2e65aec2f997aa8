"""Pytest configuration and fixtures."""

from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from taskflow.main import app
from taskflow.core.database import get_session
from taskflow.core.limiter import limiter
from taskflow.core.security import create_access_token, get_password_hash
from taskflow.models import User, UserRole, UserStatus


# Test database URL (in-memory SQLite shared across connections)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def test_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(test_session, session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with overridden dependencies."""

    async def override_get_session():
        yield test_session

    app.dependency_overrides[get_session] = override_get_session
    original_factory = app.state.session_factory
    app.state.session_factory = session_factory
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.session_factory = original_factory
    limiter.enabled = True


async def _create_user(
    session: AsyncSession,
    email: str,
    password: str,
    name: str,
    role: UserRole = UserRole.USER,
    status: UserStatus = UserStatus.ACTIVE,
) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        name=name,
        role=role,
        status=status,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def admin_user(test_session) -> User:
    """Create admin user for testing."""
    return await _create_user(
        test_session, "admin@test.com", "admin123", "Admin User", role=UserRole.ADMIN
    )


@pytest_asyncio.fixture(scope="function")
async def regular_user(test_session) -> User:
    """Create regular user for testing."""
    return await _create_user(test_session, "user@test.com", "user123", "Regular User")


@pytest_asyncio.fixture(scope="function")
async def other_user(test_session) -> User:
    """Create a second regular user for ownership tests."""
    return await _create_user(test_session, "other@test.com", "other123", "Other User")


@pytest_asyncio.fixture(scope="function")
async def inactive_user(test_session) -> User:
    """Create a deactivated user for testing."""
    return await _create_user(
        test_session,
        "inactive@test.com",
        "inactive123",
        "Inactive User",
        status=UserStatus.INACTIVE,
    )


@pytest_asyncio.fixture(scope="function")
async def admin_token(client, admin_user) -> str:
    """Get admin authentication token."""
    response = await client.post(
        "/api/auth/login",
        json={"email": "admin@test.com", "password": "admin123"},
    )
    return response.json()["token"]


@pytest_asyncio.fixture(scope="function")
async def user_token(client, regular_user) -> str:
    """Get regular user authentication token."""
    response = await client.post(
        "/api/auth/login",
        json={"email": "user@test.com", "password": "user123"},
    )
    return response.json()["token"]


@pytest_asyncio.fixture(scope="function")
async def other_token(other_user) -> str:
    """Token for the second regular user."""
    return create_access_token(subject=other_user.id)


def auth_headers(token: str) -> dict:
    """Create authorization headers."""
    return {"Authorization": f"Bearer {token}"}
