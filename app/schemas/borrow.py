import re
from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, Field, field_validator
from pydantic_core import PydanticCustomError

from app.db.models import as_utc, utcnow
from app.schemas.common import CamelModel

# Full date and time; the offset is optional and a missing one means UTC
_ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$"
)


class BorrowCreate(CamelModel):
    book: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    due_date: datetime

    @field_validator("book")
    @classmethod
    def book_must_be_uuid(cls, value: str) -> str:
        # Checked only; the id is echoed back in errors exactly as sent
        try:
            UUID(value)
        except ValueError:
            raise PydanticCustomError("custom", "Invalid book ID format")
        return value

    @field_validator("due_date", mode="before")
    @classmethod
    def due_date_is_iso_string(cls, value):
        if not isinstance(value, str) or not _ISO_DATETIME.match(value.strip()):
            raise PydanticCustomError("invalid_string", "Due date must be a valid ISO date")
        return value.strip()

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value: datetime) -> datetime:
        value = as_utc(value)
        if value <= utcnow():
            raise PydanticCustomError("custom", "Due date must be in the future")
        return value


class BorrowResponse(CamelModel):
    id: str
    book: str = Field(validation_alias=AliasChoices("book_id", "book"))
    quantity: int
    due_date: datetime
    created_at: datetime
    updated_at: datetime


class BookSummary(CamelModel):
    title: str
    isbn: str


class BorrowSummaryItem(CamelModel):
    book: BookSummary
    total_quantity: int
