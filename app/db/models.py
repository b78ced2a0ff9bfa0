import enum
import re
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    String,
    Text,
    Integer,
    Boolean,
    DateTime,
    Enum,
    CheckConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, validates

from app.core.exceptions import FieldValidationError


class Base(DeclarativeBase):
    pass


# ──────────────────────────── Enums ────────────────────────────


class Genre(str, enum.Enum):
    FICTION = "FICTION"
    NON_FICTION = "NON_FICTION"
    SCIENCE = "SCIENCE"
    HISTORY = "HISTORY"
    BIOGRAPHY = "BIOGRAPHY"
    FANTASY = "FANTASY"


GENRE_VALUES = [g.value for g in Genre]

# ISBN-10 / ISBN-13, bare or grouped by hyphens/spaces, optional "ISBN[-10|-13]:" prefix
ISBN_PATTERN = re.compile(
    r"^(?:ISBN(?:-1[03])?:? )?"
    r"(?=[0-9X]{10}$|(?=(?:[0-9]+[- ]){3})[- 0-9X]{13}$|97[89][0-9]{10}$|(?=(?:[0-9]+[- ]){4})[- 0-9]{17}$)"
    r"(?:97[89][- ]?)?[0-9]{1,5}[- ]?[0-9]+[- ]?[0-9]+[- ]?[0-9X]$"
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ──────────────────────────── Models ────────────────────────────


class Book(Base):
    __tablename__ = "books"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    genre: Mapped[Genre] = mapped_column(Enum(Genre, name="book_genre"), nullable=False)
    isbn: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    copies: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("copies >= 0", name="ck_books_copies_non_negative"),
    )

    @validates("title", "author")
    def _validate_text(self, key, value):
        if value is None or not str(value).strip():
            label = "Book title" if key == "title" else "Author name"
            raise FieldValidationError(key, f"{label} is required", "required", value)
        return str(value).strip()

    @validates("genre")
    def _validate_genre(self, key, value):
        try:
            return Genre(value)
        except ValueError:
            raise FieldValidationError(
                key,
                "Genre must be one of: " + ", ".join(GENRE_VALUES),
                "enum",
                value,
                {"enum": GENRE_VALUES},
            )

    @validates("isbn")
    def _validate_isbn(self, key, value):
        value = (value or "").strip()
        if not value:
            raise FieldValidationError(key, "ISBN is required", "required", value)
        if not ISBN_PATTERN.match(value):
            raise FieldValidationError(key, "Please enter a valid ISBN", "user defined", value)
        return value

    @validates("copies")
    def _validate_copies(self, key, value):
        if isinstance(value, bool) or not isinstance(value, int):
            raise FieldValidationError(key, "Copies must be an integer", "user defined", value)
        if value < 0:
            raise FieldValidationError(
                key, "Copies cannot be negative", "min", value, {"min": 0}
            )
        return value


class Borrow(Base):
    __tablename__ = "borrows"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid4())
    )
    # Plain reference: books may be deleted while borrow rows still point at them
    book_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_borrows_quantity_positive"),
    )

    @validates("quantity")
    def _validate_quantity(self, key, value):
        if isinstance(value, bool) or not isinstance(value, int):
            raise FieldValidationError(key, "Quantity must be an integer", "user defined", value)
        if value < 1:
            raise FieldValidationError(
                key, "Quantity must be a positive integer", "min", value, {"min": 1}
            )
        return value

    @validates("due_date")
    def _validate_due_date(self, key, value):
        value = as_utc(value)
        if value <= utcnow():
            raise FieldValidationError(
                "dueDate", "Due date must be in the future", "user defined", value.isoformat()
            )
        return value
