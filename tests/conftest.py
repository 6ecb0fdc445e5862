# tests/conftest.py

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.limiter import limiter
from app.crud.user import create_user
from app.database import database
from app.main import app
from app.schemas.auth_schemas import UserCreate
from tests.utils.helpers import register


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Each test client address comes from X-Forwarded-For so tests can act as distinct phones."""
    monkeypatch.setattr(settings, "TRUST_PROXY_HEADERS", True)
    monkeypatch.setattr(settings, "ENFORCE_UNIQUE_ORIGIN", True)
    monkeypatch.setattr(settings, "CHECKIN_RATE_LIMIT", "5 per 5 minutes")
    monkeypatch.setattr(settings, "API_RATE_LIMIT", "100 per 15 minutes")
    monkeypatch.setattr(settings, "ROSTER_POLL_INTERVAL_SECONDS", 0.01)
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'attendance_test.db'}"


# --- Service-level fixtures (async) ---
@pytest_asyncio.fixture
async def db_handle(database_url):
    await database.connect(database_url)
    await database.create_tables()
    yield database
    await database.disconnect()


@pytest_asyncio.fixture
async def owner(db_handle):
    async with db_handle.get_session() as db:
        return await create_user(db, UserCreate(name="Ada Teacher", email="ada@example.com", password="secret1"))


@pytest_asyncio.fixture
async def other_user(db_handle):
    async with db_handle.get_session() as db:
        return await create_user(db, UserCreate(name="Bob Teacher", email="bob@example.com", password="secret2"))


# --- Test Client Fixtures ---
@pytest.fixture
def test_client(monkeypatch, database_url):
    """
    Provides a TestClient backed by a fresh SQLite file database.
    """
    monkeypatch.setattr(settings, "DATABASE_URL", database_url)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers(test_client):
    return register(test_client, "owner@example.com", name="Owner")


@pytest.fixture
def other_auth_headers(test_client):
    return register(test_client, "intruder@example.com", name="Intruder")
