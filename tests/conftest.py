"""
Test Suite Configuration
"""
import os
import tempfile

# Settings are read at import time; point them at a throwaway database first
_TEST_DIR = tempfile.mkdtemp(prefix="sellerhub-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from sellerhub.core.database import AsyncSessionLocal, drop_db, init_db
from sellerhub.models import User, UserRole
from sellerhub.services.metrics_resolver import MetricsResolutionEngine
from tests.factories import create_user


@pytest.fixture
async def database():
    """Fresh schema for every test"""
    await drop_db()
    await init_db()
    yield
    await drop_db()


@pytest.fixture
async def db(database) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    async with AsyncSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def seller(db) -> User:
    return await create_user(db, UserRole.SELLER, "Shop Owner")


@pytest.fixture
async def other_seller(db) -> User:
    return await create_user(db, UserRole.SELLER, "Rival Shop")


@pytest.fixture
async def buyer(db) -> User:
    return await create_user(db, UserRole.BUYER, "Jane Buyer")


@pytest.fixture
async def admin(db) -> User:
    return await create_user(db, UserRole.ADMIN, "Site Admin")


@pytest.fixture
def engine(database) -> MetricsResolutionEngine:
    """Resolution engine over the test database"""
    return MetricsResolutionEngine(AsyncSessionLocal, max_concurrency=4, layer_timeout=5.0)


@pytest.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the ASGI app (lifespan is not run)"""
    from sellerhub.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
