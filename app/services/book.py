from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger, with_fields
from app.db.models import Book, Genre

logger = get_logger("services.book")

# Query-string sort keys mapped onto Book columns
SORTABLE_FIELDS = {
    "title": Book.title,
    "author": Book.author,
    "genre": Book.genre,
    "isbn": Book.isbn,
    "copies": Book.copies,
    "available": Book.available,
    "createdAt": Book.created_at,
    "updatedAt": Book.updated_at,
}

UNIQUE_FIELDS = ("isbn",)

DEFAULT_LIMIT = 10


async def create_book(db: AsyncSession, data: dict) -> Book:
    """Create a new book."""
    book = Book(**data)
    if book.available is None:
        book.available = True
    if book.copies == 0:
        book.available = False

    db.add(book)
    await db.flush()
    await db.refresh(book)

    logger.info("Book created", extra=with_fields(book_id=book.id, title=book.title))
    return book


async def get_books(
    db: AsyncSession,
    genre: Optional[str] = None,
    sort_by: str = "createdAt",
    sort_order: str = "asc",
    limit: Optional[int] = DEFAULT_LIMIT,
) -> List[Book]:
    """List books filtered by genre, sorted and capped at ``limit`` (``None``: no cap)."""
    query = select(Book)

    if genre:
        try:
            query = query.where(Book.genre == Genre(genre))
        except ValueError:
            return []

    sort_column = SORTABLE_FIELDS.get(sort_by, Book.created_at)
    if sort_order == "desc":
        query = query.order_by(sort_column.desc())
    else:
        query = query.order_by(sort_column.asc())

    if limit is not None:
        query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


def parse_limit(raw: Optional[str]) -> Optional[int]:
    """Read the ``limit`` query value.

    Missing or non-numeric values give the default page size; zero or a
    negative number lifts the cap.
    """
    if raw is None:
        return DEFAULT_LIMIT
    try:
        limit = int(raw.strip())
    except ValueError:
        return DEFAULT_LIMIT
    return limit if limit > 0 else None


async def get_book_by_id(db: AsyncSession, book_id: str) -> Optional[Book]:
    """Get a single book by ID."""
    result = await db.execute(select(Book).where(Book.id == book_id))
    return result.scalar_one_or_none()


async def update_book(db: AsyncSession, book_id: str, data: dict) -> Optional[Book]:
    """Apply a partial update; ``None`` values are ignored."""
    book = await get_book_by_id(db, book_id)
    if not book:
        return None

    for key, value in data.items():
        if value is not None:
            setattr(book, key, value)

    if book.copies == 0:
        book.available = False

    await db.flush()
    await db.refresh(book)

    changed = sorted(k for k, v in data.items() if v is not None)
    logger.info("Book updated", extra=with_fields(book_id=book_id, fields=changed))
    return book


async def delete_book(db: AsyncSession, book_id: str) -> bool:
    """Delete a book."""
    book = await get_book_by_id(db, book_id)
    if not book:
        return False

    await db.delete(book)
    await db.flush()

    logger.info("Book deleted", extra=with_fields(book_id=book_id))
    return True


def duplicate_field(exc: IntegrityError) -> Optional[str]:
    """Name the unique column an IntegrityError tripped over, if any."""
    message = str(exc.orig or exc).lower()
    if "unique" not in message and "duplicate" not in message:
        return None
    for field in UNIQUE_FIELDS:
        if field in message:
            return field
    return None
