"""
OwnerGate Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (fake store, real SQLite store, API client, tokens).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── fake_store:   DataStore of in-memory EntityStores that record every call
    ├── make_service: Factory for AccessControlService over fake_store
    ├── db_engine:    In-memory SQLite engine with all tables created
    ├── db_session:   AsyncSession bound to db_engine
    ├── sql_store:    DataStore over db_session
    ├── test_client:  HTTPX AsyncClient wired to a fresh app and db_engine
    └── auth_headers: Builds an Authorization header for a user id and role
"""

import os

# Override settings for testing BEFORE any app imports
# Why: app.config and app.database read the environment at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production-use-0123456789"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

import copy
import uuid
from typing import Any, AsyncGenerator, Callable, Dict, List, Mapping, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import create_all_tables, get_db_session
from app.exceptions import RecordNotFoundError
from app.services.access_control import AccessControlService
from app.services.identity import issue_token
from app.services.store import DataStore, EntityStore


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Store
# ══════════════════════════════════════════════════════════════════════════

MUTATING_CALLS = ("create", "update", "delete")


class InMemoryEntityStore(EntityStore):
    """
    Dictionary-backed EntityStore that records every call.

    Supports plain equality filters only, which is all the access-control
    layer itself ever adds. Records are returned as dict copies so tests
    can never mutate stored state by accident.
    """

    def __init__(self, entity: str):
        self.entity = entity
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Any]] = []

    def seed(self, **row: Any) -> Dict[str, Any]:
        """Insert a row directly, bypassing call recording."""
        row.setdefault("id", str(uuid.uuid4()))
        self.rows[row["id"]] = dict(row)
        return dict(row)

    @property
    def mutations(self) -> List[Tuple[str, Any]]:
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def _matching(self, where: Optional[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        where = where or {}
        return [
            row
            for row in self.rows.values()
            if all(row.get(key) == value for key, value in where.items())
        ]

    async def find_many(self, where=None):
        self.calls.append(("find_many", copy.deepcopy(dict(where or {}))))
        return [dict(row) for row in self._matching(where)]

    async def find_unique(self, where):
        self.calls.append(("find_unique", copy.deepcopy(dict(where))))
        matches = self._matching(where)
        return dict(matches[0]) if matches else None

    async def create(self, data):
        self.calls.append(("create", copy.deepcopy(dict(data))))
        return self.seed(**dict(data))

    async def update(self, where, data):
        self.calls.append(("update", (copy.deepcopy(dict(where)), copy.deepcopy(dict(data)))))
        matches = self._matching(where)
        if not matches:
            raise RecordNotFoundError(self.entity, where)
        matches[0].update(data)
        return dict(matches[0])

    async def delete(self, where):
        self.calls.append(("delete", copy.deepcopy(dict(where))))
        matches = self._matching(where)
        if not matches:
            raise RecordNotFoundError(self.entity, where)
        return self.rows.pop(matches[0]["id"])


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_store() -> DataStore:
    """
    Provides a DataStore whose four entity stores live in memory.

    Usage:
        def test_something(fake_store):
            fake_store.project.seed(id="p1", user_id="user-a", name="Site")
            ...
            assert fake_store.project.mutations == []
    """
    return DataStore(
        user=InMemoryEntityStore("user"),
        project=InMemoryEntityStore("project"),
        client_profile=InMemoryEntityStore("client_profile"),
        invoice=InMemoryEntityStore("invoice"),
    )


@pytest.fixture
def make_service(fake_store) -> Callable[..., AccessControlService]:
    """Factory: make_service("user-a"), make_service("admin-1", is_admin=True), make_service()."""

    def _make(caller_id: Optional[str] = None, is_admin: bool = False) -> AccessControlService:
        return AccessControlService(fake_store, caller_id=caller_id, is_admin=is_admin)

    return _make


@pytest_asyncio.fixture
async def db_engine():
    """
    Provides an in-memory SQLite engine with every table created.

    StaticPool keeps one connection, so all sessions see the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all_tables(bind=engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def sql_store(db_session) -> DataStore:
    return DataStore.for_session(db_session)


@pytest_asyncio.fixture
async def test_client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """
    Provides an HTTPX AsyncClient for testing API endpoints.

    A fresh app is created per test so rate-limit windows never leak between
    tests. get_db_session is overridden to use the in-memory engine.
    """
    from app.main import create_app

    factory = async_sessionmaker(db_engine, expire_on_commit=False)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = override_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers() -> Callable[..., Dict[str, str]]:
    """Factory: auth_headers("user-a") or auth_headers("admin-1", role="ADMIN")."""

    def _headers(user_id: str, role: str = "USER") -> Dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(user_id, role=role)}"}

    return _headers
