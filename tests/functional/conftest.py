"""
Shared fixtures for functional tests.
Uses httpx.AsyncClient against the real FastAPI app with an in-memory SQLite DB.
"""
from uuid import uuid4

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.db.models import Base
from app.db import session as db_session_module
from app.main import app


# ─── DB override ────────────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite engine for functional testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def client(test_session_factory):
    """Provide an httpx.AsyncClient with DB overridden to use the test DB."""

    async def override_get_db():
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[db_session_module.get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ─── Catalog helpers ────────────────────────────────────────────

def book_payload(**overrides) -> dict:
    """A valid create-book body with a fresh 13-digit ISBN."""
    data = {
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "genre": "FANTASY",
        "isbn": "978" + str(uuid4().int)[:10],
        "copies": 5,
        "description": "There and back again",
    }
    data.update(overrides)
    return data


@pytest_asyncio.fixture
async def create_book(client: AsyncClient):
    """Factory: POST a book and return its ``data`` object."""

    async def _create(**overrides) -> dict:
        resp = await client.post("/api/books", json=book_payload(**overrides))
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create
