from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    APIError,
    DatabaseError,
    FieldValidationError,
    NotFoundError,
    RecordNotFoundError,
    ValidationFailed,
)
from app.core.logging import get_logger
from app.db.session import get_db
from app.schemas.borrow import BorrowCreate, BorrowResponse, BorrowSummaryItem
from app.schemas.common import SuccessResponse
from app.services.borrow import borrow_book, get_borrow_summary

logger = get_logger("api.borrow")

router = APIRouter(prefix="/borrow", tags=["Borrow"])


@router.post(
    "",
    response_model=SuccessResponse[BorrowResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Borrow a book",
    description=(
        "Lend `quantity` copies of a book until `dueDate`. Stock is decremented and the "
        "borrow record written in one transaction; the book becomes unavailable when its "
        "last copy is lent."
    ),
    responses={
        201: {"description": "Book borrowed successfully"},
        400: {"description": "Validation failed, book unavailable, or insufficient stock"},
        404: {"description": "Book not found"},
    },
)
async def borrow_book_endpoint(
    data: BorrowCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    try:
        borrow = await borrow_book(db, data.book, data.quantity, data.due_date)
    except RecordNotFoundError:
        raise NotFoundError("Book not found")
    except FieldValidationError as e:
        raise ValidationFailed.from_field(e)
    except Exception:
        logger.exception(f"Error borrowing book {data.book}")
        raise APIError("Internal server error while processing borrow request")
    return SuccessResponse[BorrowResponse](
        message="Book borrowed successfully",
        data=BorrowResponse.model_validate(borrow),
    )


@router.get(
    "",
    response_model=SuccessResponse[List[BorrowSummaryItem]],
    summary="Borrowed books summary",
    description="Total quantity borrowed per book, with title and ISBN, largest first.",
    responses={200: {"description": "Borrowed books summary retrieved successfully"}},
)
async def borrow_summary(db: Annotated[AsyncSession, Depends(get_db)]):
    try:
        summary = await get_borrow_summary(db)
    except SQLAlchemyError:
        logger.exception("Error retrieving borrowed books summary")
        raise DatabaseError("Database aggregation error")
    except Exception:
        logger.exception("Error retrieving borrowed books summary")
        raise APIError("Internal server error while retrieving borrowed books summary")
    return SuccessResponse[List[BorrowSummaryItem]](
        message="Borrowed books summary retrieved successfully",
        data=[BorrowSummaryItem.model_validate(item) for item in summary],
    )
