from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import FieldValidationError, RecordNotFoundError
from app.core.logging import get_logger, with_fields
from app.db.models import Book, Borrow

logger = get_logger("services.borrow")


async def borrow_book(
    db: AsyncSession, book_id: str, quantity: int, due_date: datetime
) -> Borrow:
    """Lend ``quantity`` copies of a book in a single transaction.

    The book row is re-read under a row lock, checked for availability and
    stock, decremented, and the borrow record is written alongside it. Any
    exception rolls the whole transaction back before propagating; the
    session's transaction is always closed on exit. Errors echo ``book_id``
    as given; lookups and the stored record use its canonical form.
    """
    key = str(UUID(book_id))

    async with db.begin():
        result = await db.execute(
            select(Book).where(Book.id == key).with_for_update()
        )
        book = result.scalar_one_or_none()

        if not book:
            raise RecordNotFoundError("Book not found")

        if not book.available:
            raise FieldValidationError(
                "book",
                "Book is currently not available for borrowing",
                "availability",
                book_id,
            )

        if book.copies < quantity:
            raise FieldValidationError(
                "quantity",
                f"Insufficient copies available. Only {book.copies} copies remaining",
                "insufficient_stock",
                quantity,
                {"available": book.copies},
            )

        book.copies -= quantity
        if book.copies == 0:
            book.available = False

        borrow = Borrow(book_id=key, quantity=quantity, due_date=due_date)
        db.add(borrow)
        await db.flush()

    logger.info(
        "Book borrowed",
        extra=with_fields(
            borrow_id=borrow.id, book_id=key, quantity=quantity, remaining=book.copies
        ),
    )
    return borrow


async def get_borrow_summary(db: AsyncSession) -> List[dict]:
    """Total borrowed quantity per book, largest first.

    Borrow rows whose book no longer exists are left out.
    """
    total_quantity = func.sum(Borrow.quantity).label("total_quantity")
    query = (
        select(Book.title, Book.isbn, total_quantity)
        .select_from(Borrow)
        .join(Book, Book.id == Borrow.book_id)
        .group_by(Borrow.book_id, Book.title, Book.isbn)
        .order_by(total_quantity.desc())
    )

    result = await db.execute(query)
    return [
        {
            "book": {"title": row.title, "isbn": row.isbn},
            "total_quantity": int(row.total_quantity),
        }
        for row in result.all()
    ]
