"""
Pytest configuration and fixtures for backend tests.
"""

import concurrent.futures
import itertools
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.db import get_db
from rest_api.main import app
from rest_api.models import Base
from data_store.persistence import CollectionPersistence, MemoryStorage
from data_store.persistence.remote import CooperativeApiClient
from data_store.service import DataService, RemoteDataService


FIXED_NOW = datetime(2026, 10, 19, 10, 30)


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class ImmediateExecutor(concurrent.futures.Executor):
    """Runs submitted work on the calling thread so remote-mode tests are deterministic."""

    def submit(self, fn, /, *args, **kwargs):
        future = concurrent.futures.Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


def sequential_ids(prefix: str = "id"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


# =============================================================================
# Store fixtures
# =============================================================================


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def persistence(storage):
    return CollectionPersistence(storage)


@pytest.fixture
def store(persistence):
    """Empty store with predictable ids and clock."""
    return DataService(
        persistence,
        seed_demo=False,
        id_factory=sequential_ids(),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def seeded_store(persistence):
    """Store with the demo harvests and inventory."""
    return DataService(
        persistence,
        seed_demo=True,
        id_factory=sequential_ids(),
        clock=lambda: FIXED_NOW,
    )


def find_by_name(items, name):
    return next(item for item in items if getattr(item, "name", None) == name or getattr(item, "crop", None) == name)


# =============================================================================
# REST API fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.

    The lifespan is not entered, so the application's own engine and
    logging setup are left alone.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    test_client = TestClient(app)
    yield test_client

    test_client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def api(client):
    """Store gateway talking to the in-process API."""
    return CooperativeApiClient(client)


@pytest.fixture
def remote_store(api, persistence):
    """Remote-mode store whose requests run synchronously."""
    return RemoteDataService(
        api,
        persistence,
        executor=ImmediateExecutor(),
        id_factory=sequential_ids("local"),
        clock=lambda: FIXED_NOW,
    )
