"""
Mindtrail Backend - Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment overrides are applied before anything under `app` is
       imported, so the settings singleton sees test values. Each test gets
       a fresh in-memory SQLite database (aiosqlite + StaticPool) and the app
       is wired to it through `dependency_overrides`.

Fixture Hierarchy:
    Function-scoped:
    ├── mock_db_session: AsyncMock session for pure service tests
    ├── db_engine / session_factory / db_session: real in-memory database
    ├── fake_llm: scripted ChatCompletionClient (no network)
    ├── test_app / test_client: FastAPI app + HTTPX AsyncClient
    ├── user / identity: a persisted user and its Identity
    └── auth_headers: bearer headers for a user registered over HTTP
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["OPENAI_API_KEY"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Dict, List, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db_session  # noqa: E402
from app.exceptions import SummarizationError  # noqa: E402
from app.models import records, user as user_model  # noqa: E402,F401
from app.schemas.auth import Identity  # noqa: E402
from app.security import hash_password  # noqa: E402
from app.services.llm_base import ChatCompletionClient  # noqa: E402
from app.services.summary_service import SummaryService, get_summary_service  # noqa: E402

TEST_PASSWORD = "correct-horse"


class FakeChatClient(ChatCompletionClient):
    """
    In-memory provider. Replies "Summary: <last user turn>" unless told to
    fail, and records every transcript it receives.
    """

    def __init__(self, fail_reason: Optional[str] = None):
        self.fail_reason = fail_reason
        self.calls: List[List[Dict[str, str]]] = []

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        self.calls.append(messages)
        if self.fail_reason:
            raise SummarizationError(reason=self.fail_reason)
        return f"Summary: {messages[-1]['content']}"

    async def health_check(self) -> bool:
        return self.fail_reason is None


# ══════════════════════════════════════════════════════════════════════════
# Mocked Session
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A MagicMock standing in for AsyncSession.

    Usage:
        mock_db_session.flush.side_effect = OperationalError("stmt", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Real In-Memory Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(db_session):
    """A persisted user with password TEST_PASSWORD."""
    account = user_model.User(
        email="river@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        name="River",
    )
    db_session.add(account)
    await db_session.flush()
    return account


@pytest.fixture
def identity(user):
    return Identity(user_id=user.id, email=user.email, name=user.name)


# ══════════════════════════════════════════════════════════════════════════
# Application & HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_llm():
    return FakeChatClient()


@pytest.fixture
def test_app(session_factory, fake_llm):
    """A fresh app bound to the per-test database and the fake provider."""
    from app.main import create_app

    app = create_app()

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_summary_service] = lambda: SummaryService(fake_llm)
    return app


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_root(test_client):
            response = await test_client.get("/")
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register(client: AsyncClient, email: str = "sky@example.com", name: str = "Sky") -> dict:
    response = await client.post(
        "/auth/register",
        json={"email": email, "password": TEST_PASSWORD, "name": name},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def auth_headers(test_client):
    """Bearer headers for sky@example.com, registered through the API."""
    body = await register(test_client)
    return {"Authorization": f"Bearer {body['token']}"}
