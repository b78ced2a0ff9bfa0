from uuid import UUID

from app.core.exceptions import ValidationFailed
from app.core.logging import get_logger

logger = get_logger("api.dependencies")


async def valid_book_id(book_id: str) -> str:
    """Path dependency: reject ids the database could never hold."""
    try:
        return str(UUID(book_id))
    except ValueError:
        logger.warning(f"Rejected malformed book id: {book_id!r}")
        raise ValidationFailed.single(
            "bookId", "Invalid book ID format", "format", book_id
        )
