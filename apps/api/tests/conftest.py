"""
Pytest configuration and fixtures

IMPORTANT: All tests use transactional rollback isolation.
Nothing created during tests persists to the database.

The suite runs against an in-memory SQLite database built from the
models (Postgres-only DDL lives in the Alembic migrations). Redis is
replaced by an in-memory fake so caching paths run without a server.
"""
import fnmatch
import os
import sys

# Configure the app before anything imports core.config.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-resonance-suite-0123456789")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("ENVIRONMENT", "test")

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from sqlalchemy.orm import Session

from core import cache
from core.database import Base, engine, get_db
import models  # noqa: F401
from services.categories import list_active_axes, seed_core_axes


class FakeRedis:
    """Minimal in-memory Redis mock for unit tests."""

    def __init__(self):
        self._store: dict = {}
        self._ttls: dict = {}

    def ping(self):
        return True

    def get(self, key):
        return self._store.get(key)

    def setex(self, key, ttl, value):
        self._store[key] = value
        self._ttls[key] = ttl
        return True

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if key in self._store:
                del self._store[key]
                self._ttls.pop(key, None)
                deleted += 1
        return deleted

    def keys(self, pattern):
        return [k for k in self._store if fnmatch.fnmatch(k, pattern)]


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "get_redis_client", lambda: fake)
    return fake


@pytest.fixture(scope="function")
def db_session():
    """
    Create a database session with transactional rollback.

    Application commits only release a savepoint; the outer transaction is
    rolled back after the test, so nothing persists.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection, join_transaction_mode="create_savepoint")

    # Committed into the outer transaction so a test-level rollback keeps them.
    seed_core_axes(session)
    session.commit()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def axes(db_session):
    """Active axes keyed by slug."""
    return {c.slug: c for c in list_active_axes(db_session)}


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


