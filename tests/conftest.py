"""Pytest configuration and fixtures for StudentBox tests."""

import asyncio
import os
import uuid
from collections.abc import AsyncGenerator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime

import pytest
import pytest_asyncio
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from studentbox.database import get_document_models
from studentbox.models import User
from studentbox.services.auth import create_access_token, get_password_hash
from studentbox.services.student_import import (
    BatchWriteError,
    DuplicateRecordError,
    PersistenceError,
    StoreUnavailableError,
    ValidatedStudent,
    import_sessions,
)


# MongoDB connection URL for tests (can be overridden with env var)
TEST_MONGODB_URL = os.environ.get("TEST_MONGODB_URL", "mongodb://localhost:27017")

TEST_USER_EMAIL = "test@example.com"
TEST_USER_PASSWORD = "testpassword"


# Create a test-specific app to avoid lifespan conflicts
def create_test_app():
    """Create a FastAPI app configured for testing (no database lifespan)."""
    from fastapi import FastAPI
    from slowapi import _rate_limit_exceeded_handler
    from slowapi.errors import RateLimitExceeded

    from studentbox import __version__
    from studentbox.main import app as main_app
    from studentbox.main import limiter

    # Empty lifespan for testing - we manage the database ourselves
    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        yield

    test_app = FastAPI(
        title="StudentBox Test",
        version=__version__,
        lifespan=test_lifespan,
    )
    test_app.state.limiter = limiter
    test_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Copy all routes (health check included)
    for route in main_app.routes:
        test_app.routes.append(route)

    return test_app


# Get or create test app (singleton for test session)
_test_app = None


def get_test_app():
    """Get the test app singleton."""
    global _test_app
    if _test_app is None:
        _test_app = create_test_app()
    return _test_app


class FakeStudentStore:
    """In-memory StudentStore for importer and session tests.

    Args:
        existing: ID numbers already present before the import.
        max_batch_size: Atomic write limit advertised to the importer.
        fail_ids: ID numbers whose writes always fail.
        hidden_ids: ID numbers missed by lookups but rejected as duplicates
            on write, as when another writer inserts them concurrently.
        unavailable: Make every lookup raise StoreUnavailableError.
        rollback_fails: A rejected batch cannot be undone, so write_batch
            raises StoreUnavailableError instead of BatchWriteError.
    """

    def __init__(
        self,
        existing: Iterable[str] = (),
        max_batch_size: int = 500,
        fail_ids: Iterable[str] = (),
        hidden_ids: Iterable[str] = (),
        unavailable: bool = False,
        rollback_fails: bool = False,
    ):
        self.max_batch_size = max_batch_size
        self.records: dict[str, ValidatedStudent | None] = {i: None for i in existing}
        self.fail_ids = set(fail_ids)
        self.hidden_ids = set(hidden_ids)
        self.unavailable = unavailable
        self.rollback_fails = rollback_fails
        self.lookup_calls: list[list[str]] = []
        self.batch_calls: list[list[str]] = []
        self.single_calls: list[str] = []

    @property
    def written(self) -> list[str]:
        return [i for i, s in self.records.items() if s is not None]

    def _rejects(self, id_number: str) -> bool:
        return id_number in self.records or id_number in self.hidden_ids

    async def exists_by_id_number(self, id_number: str) -> bool:
        return id_number in (await self.find_existing_id_numbers([id_number]))

    async def find_existing_id_numbers(self, id_numbers: Iterable[str]) -> set[str]:
        wanted = list(id_numbers)
        self.lookup_calls.append(wanted)
        if self.unavailable:
            raise StoreUnavailableError("Network error: Unable to reach the database.")
        return {i for i in wanted if i in self.records}

    async def write_batch(self, students: list[ValidatedStudent]) -> None:
        ids = [s.id_number for s in students]
        self.batch_calls.append(ids)
        if any(i in self.fail_ids or self._rejects(i) for i in ids):
            if self.rollback_fails:
                raise StoreUnavailableError("Could not roll back a partially written batch")
            raise BatchWriteError("Database write error: batch rejected")
        for student in students:
            self.records[student.id_number] = student

    async def write_one(self, student: ValidatedStudent) -> None:
        self.single_calls.append(student.id_number)
        if student.id_number in self.fail_ids:
            raise PersistenceError("Database write error: simulated failure")
        if self._rejects(student.id_number):
            raise DuplicateRecordError(student.id_number)
        self.records[student.id_number] = student


def id_number_for(index: int) -> str:
    """A distinct 13-digit ID number for test data."""
    return f"{9001015000000 + index}"


@pytest.fixture
def store_factory():
    """Return the FakeStudentStore class for building stores in tests."""
    return FakeStudentStore


@pytest.fixture
def make_student():
    """Return a builder for ValidatedStudent objects."""

    def _make(index: int = 0, id_number: str | None = None, **kwargs) -> ValidatedStudent:
        data = {
            "id_number": id_number or id_number_for(index),
            "first_names": f"Student{index}",
            "surname": "Test",
        }
        data.update(kwargs)
        return ValidatedStudent(**data)

    return _make


@pytest.fixture(autouse=True)
def clear_import_sessions():
    """Give every test a fresh set of import sessions."""
    import_sessions.clear()
    yield
    import_sessions.clear()


@pytest.fixture(scope="session")
def mongo_available() -> bool:
    """Whether a MongoDB server answers at TEST_MONGODB_URL."""
    client = MongoClient(TEST_MONGODB_URL, serverSelectionTimeoutMS=1000)
    try:
        client.admin.command("ping")
        return True
    except PyMongoError:
        return False
    finally:
        client.close()


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use the default event loop policy."""
    return asyncio.DefaultEventLoopPolicy()


@pytest_asyncio.fixture(scope="function")
async def mongo_client(mongo_available):
    """Create a MongoDB client for testing; skips when no server is reachable."""
    if not mongo_available:
        pytest.skip(f"MongoDB not reachable at {TEST_MONGODB_URL}")

    client = AsyncIOMotorClient(
        TEST_MONGODB_URL,
        maxPoolSize=10,
        minPoolSize=1,
    )
    yield client
    client.close()


@pytest_asyncio.fixture(scope="function")
async def init_test_db(mongo_client):
    """Initialize Beanie with a unique test database.

    Creates a unique database for each test function and drops it after the test.
    """
    db_name = f"test_studentbox_{uuid.uuid4().hex[:8]}"
    db = mongo_client[db_name]

    await init_beanie(
        database=db,
        document_models=get_document_models(),
    )
    yield db

    await mongo_client.drop_database(db_name)


@pytest_asyncio.fixture(scope="function")
async def test_user_doc(init_test_db) -> User:
    """Insert the standard test user."""
    user = User(
        email=TEST_USER_EMAIL,
        hashed_password=get_password_hash(TEST_USER_PASSWORD),
        full_name="Test User",
        is_active=True,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )
    await user.insert()
    return user


@pytest_asyncio.fixture(scope="function")
async def client(test_user_doc) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client authenticated as the test user."""
    access_token = create_access_token(data={"sub": TEST_USER_EMAIL})

    app = get_test_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {access_token}"},
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def unauthenticated_client(init_test_db) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client without authentication."""
    app = get_test_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def test_user() -> dict:
    """Return test user credentials."""
    return {
        "email": TEST_USER_EMAIL,
        "password": TEST_USER_PASSWORD,
    }
