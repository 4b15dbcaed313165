# tests/conftest.py

from __future__ import annotations

import os

# Settings are read at import time: point the app at a throwaway DB before importing it.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["REMINDER_POLL_SECONDS"] = "0"
os.environ["API_PREFIX"] = ""

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from starlette.testclient import TestClient

import taskmaster.models  # noqa: F401  (registers tables on Base.metadata)
from taskmaster.core.database import Base, get_db
from taskmaster.core.security import create_access_token
from taskmaster.main import app
from taskmaster.models.enums import UserRole
from taskmaster.models.user import User
from taskmaster.services.comment_service import CommentService
from taskmaster.services.notification_service import NotificationService
from taskmaster.services.query_service import QueryService
from taskmaster.services.realtime import ConnectionRegistry
from taskmaster.services.task_service import TaskService


@pytest.fixture()
async def engine(tmp_path):
    """
    File-backed SQLite per test.

    A file (not :memory:) so the API client's per-request sessions
    see the same data as the fixture session.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'taskmaster.sqlite3'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture()
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def users(session) -> SimpleNamespace:
    """alice: manager, bob/carol/dave: regular"""
    rows = {
        "alice": User(email="alice@example.com", password_hash="x", name="Alice Johnson", role=UserRole.MANAGER),
        "bob": User(email="bob@example.com", password_hash="x", name="Bob Smith", role=UserRole.REGULAR),
        "carol": User(email="carol@example.com", password_hash="x", name="Carol Williams", role=UserRole.REGULAR),
        "dave": User(email="dave@example.com", password_hash="x", name="David Brown", role=UserRole.REGULAR),
    }
    session.add_all(rows.values())
    await session.commit()
    return SimpleNamespace(**rows)


@pytest.fixture()
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture()
def notifier(session, registry) -> NotificationService:
    return NotificationService(session, registry)


@pytest.fixture()
def task_service(session, notifier) -> TaskService:
    return TaskService(session, notifier)


@pytest.fixture()
def comment_service(session, notifier) -> CommentService:
    return CommentService(session, notifier)


@pytest.fixture()
def query_service(session) -> QueryService:
    return QueryService(session)


def auth_header(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.user_id, user.role)}"}


@pytest.fixture()
async def client(session_factory, registry):
    """
    HTTP client against the real app.

    ASGITransport does not run the lifespan, so the registry is attached by hand.
    """

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.registry = registry
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture()
def ws_client(engine, users):
    """
    Starlette TestClient for /ws against the per-test DB.

    The client runs the app on its own event loop, so it gets a NullPool
    engine: no aiosqlite connection is shared with the test's loop.
    """
    ws_engine = create_async_engine(engine.url, poolclass=NullPool)
    ws_sessions = async_sessionmaker(bind=ws_engine, expire_on_commit=False)

    async def override_get_db():
        async with ws_sessions() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
