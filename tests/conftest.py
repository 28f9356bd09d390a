"""
Pytest configuration and fixtures.

This file is automatically discovered by pytest and provides
shared fixtures for all test modules.

Tests run against an in-memory SQLite database (aiosqlite) with a fresh
schema per test, so neither PostgreSQL nor Redis is needed. The Celery
hand-off is replaced with a mock and the AI provider with
httpx.MockTransport.

References:
-----------
- Pytest Fixtures: https://docs.pytest.org/en/stable/fixture.html
- FastAPI Testing: https://fastapi.tiangolo.com/advanced/async-tests/
"""

import os

# Must be set before phrasebook.core.config is imported
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["LOG_FORMAT"] = "text"
os.environ["ACTIVITY_TIMEZONE"] = "UTC"

from datetime import datetime, timezone  # noqa: E402
from typing import AsyncGenerator, Callable, Optional  # noqa: E402
from unittest.mock import MagicMock, patch  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from phrasebook.db.base import Base  # noqa: E402
from phrasebook.db.deps import get_db, get_db_override  # noqa: E402
from phrasebook.main import app  # noqa: E402
from phrasebook.models import AppSettings, Phrase  # noqa: E402,F401
from phrasebook.services.ai.client import OpenRouterClient  # noqa: E402


# ================================
# Pytest Configuration
# ================================

def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: tests that exercise the HTTP API end to end"
    )


# ================================
# Database Fixtures
# ================================

@pytest_asyncio.fixture
async def test_engine():
    """
    Create an in-memory SQLite engine with all tables.

    StaticPool keeps one connection alive so every session in the test
    sees the same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker:
    """Session factory bound to the test engine (stands in for AsyncSessionLocal and task_session)."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A database session for one test."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def make_phrase(db_session: AsyncSession) -> Callable:
    """
    Insert a phrase directly.

    Usage:
        phrase = await make_phrase("Know thyself", category="Philosophical")
        pending = await make_phrase("Just saved")   # Processing
    """
    async def _make(
        text: str,
        category: Optional[str] = None,
        source: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Phrase:
        if category is None:
            phrase = Phrase.create_processing(text, source)
        else:
            phrase = Phrase(text=text, source=source, category=category, is_processing=False)
        if created_at is not None:
            phrase.created_at = created_at
        db_session.add(phrase)
        await db_session.commit()
        await db_session.refresh(phrase)
        return phrase

    return _make


@pytest_asyncio.fixture
async def api_key_settings(db_session: AsyncSession) -> AppSettings:
    """A saved settings record with an API key."""
    app_settings = AppSettings(api_key="sk-or-test-1234", preferred_model=None)
    db_session.add(app_settings)
    await db_session.commit()
    await db_session.refresh(app_settings)
    return app_settings


# ================================
# AI Provider Fixtures
# ================================

def chat_completion(content: str) -> dict:
    """A minimal OpenAI-style chat completion envelope."""
    return {
        "id": "gen-test",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}}
        ],
    }


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler):
        self.requests = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def ai_transport():
    """
    Build a recording transport from a handler or a fixed reply.

    Usage:
        transport = ai_transport(reply="Technical")
        transport = ai_transport(handler=lambda request: httpx.Response(500))
    """
    def _make(reply: Optional[str] = None, handler=None) -> RecordingTransport:
        if handler is None:
            def handler(request: httpx.Request) -> httpx.Response:
                return httpx.Response(200, json=chat_completion(reply or ""))
        return RecordingTransport(handler)

    return _make


@pytest.fixture
def client_factory_for() -> Callable:
    """
    Build a PhraseService client_factory that routes calls through a transport.

    Usage:
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
    """
    def _make(transport: httpx.AsyncBaseTransport) -> Callable[..., OpenRouterClient]:
        def _factory(api_key: str, model: Optional[str] = None) -> OpenRouterClient:
            return OpenRouterClient(api_key=api_key, model=model, transport=transport)

        return _factory

    return _make


# ================================
# Celery Fixtures
# ================================

@pytest.fixture
def mock_enqueue() -> MagicMock:
    """Replace the Celery hand-off used by the API with a mock."""
    with patch("phrasebook.tasks.phrase_tasks.enqueue_categorization") as mocked:
        yield mocked


# ================================
# FastAPI Client Fixtures
# ================================

@pytest_asyncio.fixture
async def client(db_session: AsyncSession, mock_enqueue: MagicMock) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing FastAPI endpoints.

    Overrides the get_db dependency to use the test database session.

    Usage:
        async def test_something(client: AsyncClient):
            response = await client.get("/api/v1/phrases")
            assert response.status_code == 200
    """
    app.dependency_overrides[get_db] = get_db_override(db_session)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def utc_now() -> datetime:
    return datetime.now(timezone.utc)
