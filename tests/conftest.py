"""
Shared fixtures for Quill backend integration tests.

Each test function gets its own async session on a fresh database (in-memory
SQLite by default; point TEST_DATABASE_URL at PostgreSQL to run against the
real driver).  Tables are created before and dropped after every test.

The AI gateway is never called: ``get_ai_client`` is overridden with
:class:`FakeAIClient`, whose behaviour each test can adjust.
"""
from __future__ import annotations

import os
from typing import AsyncGenerator, List, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Override settings *before* any app module is imported, so that
# settings.DATABASE_URL and the global engine point at the test DB.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("AI_GATEWAY_API_KEY", "test-gateway-key")

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import database_models  # noqa: E402,F401
from app.services.ai_gateway import AIServiceError, get_ai_client  # noqa: E402


# ---------------------------------------------------------------------------
# Fake AI gateway
# ---------------------------------------------------------------------------

class FakeAIClient:
    """Stand-in for AIGatewayClient with deterministic replies."""

    def __init__(self) -> None:
        self.outline: List[str] = ["Introduction", "Market Size", "Outlook"]
        self.error: Optional[str] = None
        self.generation_runs = 0
        self.calls: List[tuple] = []

    def _maybe_fail(self) -> None:
        if self.error:
            raise AIServiceError(self.error)

    async def generate_outline(self, topic, document_type) -> List[str]:
        self.calls.append(("outline", topic, getattr(document_type, "value", document_type)))
        self._maybe_fail()
        return list(self.outline)

    async def generate_sections(self, topic, document_type, titles) -> List[str]:
        self.calls.append(("content", topic, list(titles)))
        self._maybe_fail()
        self.generation_runs += 1
        return [f"{title} body (run {self.generation_runs})" for title in titles]

    async def refine_content(self, title, current_content, instruction) -> str:
        self.calls.append(("refine", title, current_content, instruction))
        self._maybe_fail()
        return f"{title} rewritten: {instruction}"

    async def check_health(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a DB session for each test. After the test, all tables are dropped
    so each test starts with a clean slate.
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    # Ensure tables exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def fake_ai() -> FakeAIClient:
    return FakeAIClient()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    fake_ai: FakeAIClient,
) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the DB and AI gateway
    dependencies overridden.
    """

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_ai_client] = lambda: fake_ai

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

AUTH_HEADERS = {
    "X-User-Id": "test-user-1",
    "X-User-Email": "test1@example.com",
    "X-User-Name": "Test User 1",
}

AUTH_HEADERS_USER2 = {
    "X-User-Id": "test-user-2",
    "X-User-Email": "test2@example.com",
    "X-User-Name": "Test User 2",
}


async def create_project(
    client: AsyncClient,
    topic: str = "EV market analysis",
    sections: Optional[List[str]] = None,
    document_type: str = "docx",
    headers=None,
) -> dict:
    resp = await client.post(
        "/api/projects",
        json={
            "topic": topic,
            "document_type": document_type,
            "sections": sections or ["A", "B", "C"],
        },
        headers=headers or AUTH_HEADERS,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
