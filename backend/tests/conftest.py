"""
Places Backend: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite database file (aiosqlite) with the
       real schema, so transactions commit and roll back for real.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:        async engine on a temp SQLite file, tables created
    ├── session_factory:  sessionmaker bound to db_engine
    ├── store:            EntityStore over one open session (the "request")
    ├── make_user:        inserts a committed user, returns its id
    ├── read_user/read_place: read committed state through a fresh session
    ├── mock_store:       AsyncMock EntityStore for failure-path tests
    └── test_client:      HTTPX AsyncClient against the app, DB overridden
"""

import os
import tempfile
import uuid
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time; set the environment before any app import
_tmp_dir = tempfile.mkdtemp(prefix="places_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp_dir}/app.db"
os.environ["GEOCODER_PROVIDER"] = "static"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.database import Base
from app.models.place import Place
from app.models.user import User
from app.store import EntityStore


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A fresh database file per test with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def store(session_factory):
    """EntityStore over one session, like a single request."""
    async with session_factory() as session:
        yield EntityStore(session)


@pytest.fixture
def make_user(session_factory):
    """
    Insert a committed user; returns its id.

    Usage:
        user_id = await make_user(email="ada@example.com")
    """
    async def _make_user(
        name: str = "Ada",
        email: str = None,
        places=None,
    ) -> uuid.UUID:
        async with session_factory() as session:
            user = User(
                name=name,
                email=email or f"{uuid.uuid4().hex[:8]}@example.com",
                password="salt$hash",
                image="https://example.com/avatar.png",
                places=list(places or []),
            )
            session.add(user)
            await session.commit()
            return user.id

    return _make_user


@pytest.fixture
def read_user(session_factory):
    """Load a user through a new session (only committed data is visible)."""
    async def _read_user(user_id: uuid.UUID):
        async with session_factory() as session:
            return await session.get(User, user_id)

    return _read_user


@pytest.fixture
def read_place(session_factory):
    async def _read_place(place_id):
        if isinstance(place_id, str):
            place_id = uuid.UUID(place_id)
        async with session_factory() as session:
            return await session.get(Place, place_id)

    return _read_place


@pytest.fixture
def mock_store():
    """
    EntityStore stand-in with async read/write methods.

    Usage:
        mock_store.find_place.side_effect = OperationalError("...", {}, None)
    """
    store = MagicMock(spec=EntityStore)
    for name in (
        "find_place",
        "find_place_with_creator",
        "find_user",
        "find_user_by_email",
        "find_user_with_places",
        "list_users",
        "save",
        "delete",
    ):
        setattr(store, name, AsyncMock())
    return store


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the app, with get_db_session pointed at
    the per-test database.
    """
    from app.database import engine, get_db_session
    from app.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    # /health uses the module engine; drop connections bound to this loop
    await engine.dispose()
