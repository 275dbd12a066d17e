"""Service test fixtures - async DB, seeded users, authenticated HTTP client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test session factory
    - db_manager patched so the readiness probe sees the test engine
    - Bearer tokens are minted with the same gateway settings the app uses

Design Decisions:
    - SQLite in-memory: fast, no external dependency; row locks (FOR UPDATE)
      are not exercised here, the unique constraints are
    - All timestamps handed to services are aware UTC
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from memoria.api.deps import get_identity_gateway
from memoria.core.repository_protocols import Identity
from memoria.db.base import Base
from memoria.infrastructure.database import get_db, DatabaseSessionManager
import memoria.infrastructure.database as db_module
import memoria.models  # noqa: F401
from memoria.main import app
from memoria.models.prompt import Prompt
from memoria.models.user import User

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def auth():
    """Build the Authorization header the identity provider would issue."""
    def _auth(user_id: str, name: str | None = None) -> dict[str, str]:
        identity = Identity(
            user_id=user_id,
            display_name=name or user_id.capitalize(),
            handle=user_id,
        )
        token = get_identity_gateway().issue(identity)
        return {"Authorization": f"Bearer {token}"}
    return _auth


@pytest.fixture
async def make_user(test_db):
    async def _make(user_id: str, name: str | None = None) -> User:
        user = User(
            id=user_id,
            display_name=name or user_id.capitalize(),
            handle=user_id,
        )
        test_db.add(user)
        await test_db.commit()
        return user
    return _make


@pytest.fixture
async def users(make_user):
    """Six users: enough to fill a maximum-size group."""
    return {
        uid: await make_user(uid)
        for uid in ("alice", "bob", "carol", "dave", "erin", "frank")
    }


@pytest.fixture
async def make_prompt(test_db):
    async def _make(
        active_at: datetime = NOW - timedelta(days=1),
        reveal_at: datetime = NOW + timedelta(days=2),
        content: str = "What made you laugh this week?",
    ) -> Prompt:
        prompt = Prompt(content=content, active_at=active_at, reveal_at=reveal_at)
        test_db.add(prompt)
        await test_db.commit()
        return prompt
    return _make


@pytest.fixture
def now() -> datetime:
    """Fixed service-level clock; route tests use the wall clock instead."""
    return NOW
