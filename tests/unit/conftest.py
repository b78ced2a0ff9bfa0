"""
Shared fixtures for unit tests.
Uses an in-memory SQLite database for fast isolated testing.
"""
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.db.models import Base, Book, Borrow, Genre


@pytest_asyncio.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncSession:
    """Provide a database session for each test."""
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


# ─── Helper factories ───────────────────────────────────────────


def random_isbn() -> str:
    return f"978{uuid4().int % 10**10:010d}"


@pytest.fixture
def make_book():
    """Factory fixture to create Book instances."""
    def _make(
        title: str = "Test Book",
        author: str = "Test Author",
        genre: Genre = Genre.FICTION,
        isbn: str = None,
        copies: int = 5,
        description: str = "A test book",
        available: bool = True,
    ) -> Book:
        return Book(
            id=str(uuid4()),
            title=title,
            author=author,
            genre=genre,
            isbn=isbn or random_isbn(),
            copies=copies,
            description=description,
            available=available,
        )
    return _make


@pytest.fixture
def make_borrow():
    """Factory fixture to create Borrow instances."""
    def _make(
        book_id: str = None,
        quantity: int = 1,
        due_date: datetime = None,
    ) -> Borrow:
        return Borrow(
            id=str(uuid4()),
            book_id=book_id or str(uuid4()),
            quantity=quantity,
            due_date=due_date or datetime.now(timezone.utc) + timedelta(days=14),
        )
    return _make
