"""
MindVault Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (mocked DB, cipher, API client).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Session-scoped (created once for all tests):
    └── cipher: FieldCipher with a fixed test secret (scrypt runs once)

    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── make_result: Builds fake SQLAlchemy Result objects
    ├── user_id: Random caller identity
    └── test_client: HTTPX AsyncClient wired to the app with overrides
"""

import os
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Override settings for testing BEFORE any mindvault imports
# Why: mindvault.config builds its settings singleton at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ENCRYPTION_KEY"] = "test-encryption-key-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from mindvault.services.field_cipher import FieldCipher  # noqa: E402

TEST_SECRET = "test-encryption-key-not-for-production"


# ══════════════════════════════════════════════════════════════════════════
# Session-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def cipher() -> FieldCipher:
    """A FieldCipher keyed from TEST_SECRET, shared by the whole run."""
    return FieldCipher(TEST_SECRET)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_entry(mock_db_session, make_result):
            mock_db_session.execute.return_value = make_result(one=entry)
            result = await service.get_entry(mock_db_session, user_id, entry.id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_result():
    """
    Factory for fake `Result` objects returned by `await session.execute()`.

    Args (of the returned factory):
        one:   value for scalar_one_or_none() and scalars().first()
        many:  list for scalars().all()
        scalar: value for scalar()
    """

    def _make(one=None, many=None, scalar=None):
        result = MagicMock()
        result.scalar_one_or_none.return_value = one
        result.scalar.return_value = scalar
        result.scalars.return_value.all.return_value = list(many or [])
        result.scalars.return_value.first.return_value = one
        return result

    return _make


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest_asyncio.fixture
async def test_client(mock_db_session, cipher):
    """
    Provides an async HTTP test client for endpoint testing.

    The database session and field cipher are swapped through
    app.dependency_overrides; callers pass X-User-ID themselves.

    Usage:
        async def test_list(test_client, user_id):
            response = await test_client.get(
                "/api/journal", headers={"X-User-ID": str(user_id)}
            )
    """
    from mindvault.database import get_db_session
    from mindvault.dependencies import get_field_cipher
    from mindvault.main import app

    async def _session_override():
        yield mock_db_session

    app.dependency_overrides[get_db_session] = _session_override
    app.dependency_overrides[get_field_cipher] = lambda: cipher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
