"""
Pytest configuration and fixtures for Taskgate tests.
"""

from datetime import date, datetime

import pytest
import pytest_asyncio
from fastapi import Request
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import taskgate.models  # noqa: F401
from taskgate.main import app
from taskgate.auth import get_current_user
from taskgate.database import get_session
from taskgate.models import User
from taskgate.models.common import ROLE_ADMIN, ROLE_MANAGER, ROLE_STAFF
from taskgate.services.authorization import Actor
from taskgate.services.notifications import get_notification_sink
from taskgate.services.projects import ProjectService
from taskgate.services.subtasks import SubtaskService
from taskgate.services.tasks import TaskService
from taskgate.store import EntityStore


# In-memory database shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite://"

FIXED_NOW = datetime(2025, 6, 2, 9, 30)
TODAY = FIXED_NOW.date()


def fixed_clock() -> datetime:
    return FIXED_NOW


class RecordingSink:
    """Notification sink that keeps notifications in memory."""

    def __init__(self):
        self.sent = []

    async def create(self, recipient_id, message, acting_user_id=None, deadline=None, task_id=None):
        self.sent.append(
            {
                "recipient_id": recipient_id,
                "message": message,
                "acting_user_id": acting_user_id,
                "deadline": deadline,
                "task_id": task_id,
            }
        )


class FailingSink:
    async def create(self, *args, **kwargs):
        raise RuntimeError("notification store unavailable")


# (id, username, roles, department)
USERS = [
    ("u1", "alice", [ROLE_STAFF], "eng"),
    ("u2", "bob", [ROLE_STAFF], "eng"),
    ("u3", "carol", [ROLE_STAFF], "sales"),
    ("u4", "dave", [ROLE_STAFF], "eng"),
    ("u5", "erin", [ROLE_STAFF], "eng"),
    ("u6", "frank", [ROLE_STAFF], "eng"),
    ("mgr", "mona", [ROLE_MANAGER], "eng"),
    ("sales-mgr", "sam", [ROLE_MANAGER], "sales"),
    ("admin", "root", [ROLE_ADMIN], None),
]


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def store(test_session):
    return EntityStore(test_session)


@pytest_asyncio.fixture
async def actors(store) -> dict[str, Actor]:
    """Seed the standard users and return their actors keyed by id."""
    result = {}
    for user_id, username, roles, department in USERS:
        user = await store.create(User(id=user_id, username=username, roles=roles, department=department))
        result[user_id] = Actor.from_user(user)
    return result


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def projects(store):
    return ProjectService(store, clock=fixed_clock)


@pytest.fixture
def tasks(store, sink):
    return TaskService(store, notifications=sink, clock=fixed_clock)


@pytest.fixture
def subtasks(store):
    return SubtaskService(store, clock=fixed_clock)


@pytest_asyncio.fixture
async def project(projects, actors):
    """Project owned by u1 with every eng staff user as a member."""
    return await projects.create(
        {"name": "Platform", "member_ids": ["u1", "u2", "u4", "u5", "u6", "mgr"]},
        actors["u1"],
    )


@pytest_asyncio.fixture(scope="function")
async def client(test_engine):
    """
    Create an async test client with test database.

    The authenticated uid comes from the ``X-Test-User`` header and is
    resolved to an actor through the real user lookup.
    """
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        for user_id, username, roles, department in USERS:
            session.add(User(id=user_id, username=username, roles=roles, department=department))
        await session.commit()

    async def override_get_session():
        async with async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user(request: Request) -> str:
        return request.headers.get("X-Test-User", "u1")

    recording_sink = RecordingSink()

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_notification_sink] = lambda: recording_sink

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def as_user(user_id: str) -> dict[str, str]:
    return {"X-Test-User": user_id}


def future(days: int) -> date:
    return date.fromordinal(TODAY.toordinal() + days)
