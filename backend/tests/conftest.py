"""
Pytest configuration and fixtures for the backend tests.
"""
import os
import tempfile

# Settings are read at import time; point them at throwaway locations first
_TMP_DIR = tempfile.mkdtemp(prefix="dyor_hub_tests_")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-referral-tests-only")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR}/app.db")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP_DIR, "logs"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from typing import AsyncGenerator, Callable
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from faker import Faker

from main import app
from db.base import Base
from db.session import get_db_session
from db.models.user import User as UserModel
from core.security import create_access_token

# Initialize Faker for test data generation
fake = Faker()


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async test client; every request gets its own session on the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """Factory persisting a user, optionally with a referral code already assigned."""
    async def _make_user(referral_code: str = None, username: str = None) -> UserModel:
        user = UserModel(
            username=username or f"{fake.user_name()}_{fake.pyint(1000, 9999)}",
            display_name=fake.name(),
            avatar_url=fake.image_url(),
            hashed_password="not-a-real-hash",
            referral_code=referral_code,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def auth_headers() -> Callable:
    """Bearer header for a user."""
    def _auth_headers(user: UserModel) -> dict:
        token = create_access_token(user.id, user.username)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
