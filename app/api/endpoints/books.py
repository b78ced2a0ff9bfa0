from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import valid_book_id
from app.core.exceptions import APIError, FieldValidationError, NotFoundError, ValidationFailed
from app.core.logging import get_logger
from app.core.responses import api_response
from app.db.session import get_db
from app.schemas.book import BookCreate, BookUpdate, BookResponse
from app.schemas.common import SuccessResponse
from app.services.book import (
    create_book,
    get_books,
    get_book_by_id,
    update_book,
    delete_book,
    duplicate_field,
    parse_limit,
)

logger = get_logger("api.books")

router = APIRouter(prefix="/books", tags=["Books"])

BookId = Annotated[str, Depends(valid_book_id)]
Session = Annotated[AsyncSession, Depends(get_db)]


def _unique_violation(exc: IntegrityError, data: dict) -> ValidationFailed | None:
    field = duplicate_field(exc)
    if field is None:
        return None
    return ValidationFailed.single(field, f"{field} already exists", "unique", data.get(field))


@router.post(
    "",
    response_model=SuccessResponse[BookResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a book",
    description="Add a new book to the catalog.",
    responses={
        201: {"description": "Book created successfully"},
        400: {"description": "Validation failed (including duplicate ISBN)"},
    },
)
async def create_book_endpoint(data: BookCreate, db: Session):
    payload = data.model_dump()
    try:
        book = await create_book(db, payload)
    except FieldValidationError as e:
        raise ValidationFailed.from_field(e)
    except IntegrityError as e:
        error = _unique_violation(e, payload)
        if error is None:
            logger.exception("Error creating book")
            raise APIError("Internal server error while creating book")
        raise error
    except Exception:
        logger.exception("Error creating book")
        raise APIError("Internal server error while creating book")
    return SuccessResponse[BookResponse](message="Book created successfully", data=BookResponse.model_validate(book))


@router.get(
    "",
    response_model=SuccessResponse[List[BookResponse]],
    summary="List books",
    description=(
        "Retrieve books, optionally restricted to one genre (`filter`), ordered by "
        "`sortBy` in `sort` direction and capped at `limit` results (default 10; zero or "
        "less means no cap)."
    ),
    responses={200: {"description": "Books retrieved successfully"}},
)
async def list_books(
    db: Session,
    genre: str | None = Query(None, alias="filter"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort: str = Query("asc"),
    limit: str | None = Query(None),
):
    try:
        books = await get_books(
            db, genre=genre, sort_by=sort_by, sort_order=sort, limit=parse_limit(limit)
        )
    except Exception:
        logger.exception("Error retrieving books")
        raise APIError("Internal server error while retrieving books")
    return SuccessResponse[List[BookResponse]](
        message="Books retrieved successfully",
        data=[BookResponse.model_validate(book) for book in books],
    )


@router.get(
    "/{book_id}",
    response_model=SuccessResponse[BookResponse],
    summary="Get book details",
    description="Retrieve a single book by its ID.",
    responses={
        200: {"description": "Book retrieved successfully"},
        400: {"description": "Invalid book ID format"},
        404: {"description": "Book not found"},
    },
)
async def get_book(book_id: BookId, db: Session):
    try:
        book = await get_book_by_id(db, book_id)
    except Exception:
        logger.exception(f"Error retrieving book {book_id}")
        raise APIError("Internal server error while retrieving book")
    if not book:
        raise NotFoundError("Book not found")
    return SuccessResponse[BookResponse](message="Book retrieved successfully", data=BookResponse.model_validate(book))


@router.put(
    "/{book_id}",
    response_model=SuccessResponse[BookResponse],
    summary="Update a book",
    description="Partially update a book; only the supplied fields change.",
    responses={
        200: {"description": "Book updated successfully"},
        400: {"description": "Validation failed (including duplicate ISBN)"},
        404: {"description": "Book not found"},
    },
)
async def update_book_endpoint(book_id: BookId, data: BookUpdate, db: Session):
    payload = data.model_dump(exclude_unset=True)
    try:
        book = await update_book(db, book_id, payload)
    except FieldValidationError as e:
        raise ValidationFailed.from_field(e)
    except IntegrityError as e:
        error = _unique_violation(e, payload)
        if error is None:
            logger.exception(f"Error updating book {book_id}")
            raise APIError("Internal server error while updating book")
        raise error
    except Exception:
        logger.exception(f"Error updating book {book_id}")
        raise APIError("Internal server error while updating book")
    if not book:
        raise NotFoundError("Book not found")
    return SuccessResponse[BookResponse](message="Book updated successfully", data=BookResponse.model_validate(book))


@router.delete(
    "/{book_id}",
    response_model=SuccessResponse[None],
    summary="Delete a book",
    description="Permanently delete a book from the catalog.",
    responses={
        200: {"description": "Book deleted successfully"},
        400: {"description": "Invalid book ID format"},
        404: {"description": "Book not found"},
    },
)
async def delete_book_endpoint(book_id: BookId, db: Session):
    try:
        deleted = await delete_book(db, book_id)
    except Exception:
        logger.exception(f"Error deleting book {book_id}")
        raise APIError("Internal server error while deleting book")
    if not deleted:
        raise NotFoundError("Book not found")
    return api_response("Book deleted successfully", None)
