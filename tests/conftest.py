# tests/conftest.py
import os

# Keep the application engine off PostgreSQL during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from healthwatch.main import app
from healthwatch.db.database import Base

# Import models so metadata knows about all tables
import healthwatch.models.endpoint
from healthwatch.models.endpoint import Endpoint, EndpointStatus
from healthwatch.repositories.endpoint_repository import EndpointRepository


@pytest.fixture(scope="session")
def engine():
    """Create an in-memory SQLite database shared across tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        # single connection shared with TestClient worker threads
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def clean_db(engine):
    """Reset all tables before each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture()
def db(engine):
    """Return a new SQLAlchemy session for each test."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repository(db):
    return EndpointRepository(db)


@pytest.fixture
def notifier():
    """Notification collaborator double."""
    notifier = AsyncMock()
    notifier.notify_unhealthy = AsyncMock(return_value=None)
    return notifier


@pytest.fixture
def make_endpoint(repository):
    """Factory that stores an endpoint with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "owner_id": "owner-1",
            "endpoint_id": f"endpoint-{counter['n']}",
            "tenant_id": "tenant-a",
            "category": "api",
            "name": f"Endpoint {counter['n']}",
            "url": "https://example.com/health",
            "timeout_ms": 5000,
            "status": EndpointStatus.UNKNOWN,
            "status_since": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        return repository.create(Endpoint(**fields))

    return _make


@pytest.fixture
def client(db):
    """FastAPI test client that routes all DB deps to the test session."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    from healthwatch.db.database import get_db as db_get_db

    app.dependency_overrides[db_get_db] = override_get_db

    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def anyio_backend():
    """Run anyio-marked tests on asyncio; the code under test uses asyncio primitives."""
    return "asyncio"
