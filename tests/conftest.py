"""
Pytest fixtures for test database, client, audit doubles and seed data.

Uses TEST_DATABASE_URL when set (PostgreSQL in CI); otherwise a temporary
SQLite file through aiosqlite. Tables are created and dropped per test.
"""

import os
import tempfile
from datetime import date
from typing import Any, AsyncGenerator, Optional

TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), f'gearhub_test_{os.getpid()}.db')}",
)
# Settings are cached on first use; point the app at the test database before importing it
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("AUDIT_SINK", "null")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from gearhub.main import app
from gearhub.api.deps import get_audit
from gearhub.db.base import Base
from gearhub.db.session import get_db
from gearhub.models import Event, Item
from gearhub.services.item_service import create_item
from gearhub.services.interfaces.audit import AuditSink

_connect_args = {"timeout": 30} if TEST_DATABASE_URL.startswith("sqlite") else {}

# NullPool: every session gets its own connection, so racing tasks really
# run on separate connections, and nothing outlives a test's event loop
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
    connect_args=_connect_args,
)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

ACTOR_ID = 1


class RecordingAuditSink(AuditSink):
    """Keeps audit records in memory for assertions."""

    def __init__(self):
        self.records: list[tuple[Optional[int], str, dict[str, Any]]] = []

    async def record(self, actor_id, action, details):
        self.records.append((actor_id, action, details))

    def actions(self) -> list[str]:
        return [action for _, action, _ in self.records]


class FailingAuditSink(AuditSink):
    async def record(self, actor_id, action, details):
        raise RuntimeError("audit store is down")


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def session_factory(db_session: AsyncSession) -> async_sessionmaker[AsyncSession]:
    """Factory for extra sessions (one per concurrent task); tables already exist."""
    return TestSessionLocal


@pytest_asyncio.fixture
async def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, audit_sink: RecordingAuditSink) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB and audit dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit] = lambda: audit_sink

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def actor_headers() -> dict:
    return {"X-Actor-Id": str(ACTOR_ID)}


# Seed rows are handed out detached. A service call that is rejected rolls the
# session back, and rollback expires every object still attached to it; a
# detached snapshot keeps its loaded fields readable after that.

async def add_event(session: AsyncSession, name: str, start: date, end: date, location: str = "Hall A") -> Event:
    event = Event(name=name, location=location, start_date=start, end_date=end)
    session.add(event)
    await session.commit()
    await session.refresh(event)
    session.expunge(event)
    return event


async def add_item(session: AsyncSession, code: str, name: str = "LED Wall Panel") -> Item:
    item = await create_item(session, name, code, category="Display", location="Main Warehouse")
    session.expunge(item)
    return item


@pytest_asyncio.fixture
async def test_item(db_session: AsyncSession) -> Item:
    return await add_item(db_session, "I1")


@pytest_asyncio.fixture
async def june_events(db_session: AsyncSession) -> tuple[Event, Event, Event]:
    """E1 [06-01, 06-03], E2 [06-04, 06-06], E3 [06-03, 06-04] bridging both."""
    e1 = await add_event(db_session, "Trade Fair", date(2024, 6, 1), date(2024, 6, 3))
    e2 = await add_event(db_session, "Product Launch", date(2024, 6, 4), date(2024, 6, 6))
    e3 = await add_event(db_session, "Press Day", date(2024, 6, 3), date(2024, 6, 4))
    return e1, e2, e3
