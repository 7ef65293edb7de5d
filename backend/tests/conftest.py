"""
Userbase Backend - Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_repository: AsyncMock standing in for UserRepository (no DB)
    ├── make_user:       factory for attribute objects shaped like User rows
    ├── database:        Database handle on a fresh SQLite file, tables created
    ├── db_session:      one committed-on-exit session from that handle
    └── test_client:     HTTPX AsyncClient talking to an app built on `database`
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="userbase_test_"), "import.db"
)
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.database import Database
from app.main import create_app


@pytest.fixture
def mock_repository():
    """
    Provides a repository double for service tests.

    Usage:
        mock_repository.get.return_value = make_user(id=3)
        await UserService(mock_repository).get_user("3")
    """
    repository = AsyncMock()
    repository.list_page = AsyncMock()
    repository.count = AsyncMock(return_value=0)
    repository.get = AsyncMock(return_value=None)
    repository.create = AsyncMock()
    repository.update = AsyncMock(return_value=None)
    repository.delete = AsyncMock(return_value=False)
    return repository


@pytest.fixture
def make_user():
    """Builds objects with the User row attributes; keyword overrides win."""
    def factory(**overrides):
        now = datetime.now(timezone.utc)
        data = {
            "id": 1,
            "first_name": "Alice",
            "last_name": "Wilson",
            "email": "alice@example.com",
            "age": 28,
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return SimpleNamespace(**data)
    return factory


@pytest.fixture
def alice_payload():
    return {
        "firstName": "Alice",
        "lastName": "Wilson",
        "email": "alice@example.com",
        "age": 28,
    }


@pytest_asyncio.fixture
async def database(tmp_path):
    """A Database on a throwaway SQLite file with the schema created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def app(database):
    return create_app(database=database)


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport does not run the lifespan, which is why `database` creates
    the tables itself. raise_app_exceptions=False lets tests observe the 500
    envelope produced by the catch-all handler.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
