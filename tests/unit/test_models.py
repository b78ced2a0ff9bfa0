"""
Unit tests for database models – enums, defaults, assignment validators, constraints.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import FieldValidationError
from app.db.models import Book, Borrow, Genre, GENRE_VALUES, as_utc


# ─── Enum values ────────────────────────────────────────────────


class TestGenreEnum:
    def test_all_genres(self):
        assert GENRE_VALUES == [
            "FICTION", "NON_FICTION", "SCIENCE", "HISTORY", "BIOGRAPHY", "FANTASY",
        ]

    def test_genre_is_str_enum(self):
        assert isinstance(Genre.HISTORY, str)
        assert Genre.HISTORY == "HISTORY"


class TestAsUtc:
    def test_naive_gets_utc(self):
        assert as_utc(datetime(2030, 1, 1)).tzinfo == timezone.utc

    def test_aware_untouched(self):
        value = datetime(2030, 1, 1, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(value) is value


# ─── Book validators ────────────────────────────────────────────


class TestBookValidators:
    def test_trims_text(self, make_book):
        book = make_book(title="  Spaced  ", author=" Someone ")
        assert book.title == "Spaced"
        assert book.author == "Someone"

    def test_blank_title_rejected(self, make_book):
        with pytest.raises(FieldValidationError) as exc_info:
            make_book(title="  ")
        assert exc_info.value.field == "title"
        assert exc_info.value.message == "Book title is required"

    def test_genre_string_coerced(self, make_book):
        assert make_book(genre="BIOGRAPHY").genre is Genre.BIOGRAPHY

    def test_unknown_genre_rejected(self, make_book):
        with pytest.raises(FieldValidationError) as exc_info:
            make_book(genre="POETRY")
        assert exc_info.value.kind == "enum"
        assert exc_info.value.properties["enum"] == GENRE_VALUES

    def test_bad_isbn_rejected(self, make_book):
        with pytest.raises(FieldValidationError) as exc_info:
            make_book(isbn="123")
        assert exc_info.value.message == "Please enter a valid ISBN"
        assert exc_info.value.value == "123"

    def test_negative_copies_rejected(self, make_book):
        with pytest.raises(FieldValidationError) as exc_info:
            make_book(copies=-1)
        assert exc_info.value.kind == "min"
        assert exc_info.value.properties == {"min": 0}

    def test_non_integer_copies_rejected(self, make_book):
        with pytest.raises(FieldValidationError):
            make_book(copies=1.5)

    def test_assignment_is_validated(self, make_book):
        book = make_book(copies=3)
        with pytest.raises(FieldValidationError):
            book.copies = -2
        assert book.copies == 3


# ─── Borrow validators ──────────────────────────────────────────


class TestBorrowValidators:
    def test_quantity_must_be_positive(self, make_borrow):
        with pytest.raises(FieldValidationError) as exc_info:
            make_borrow(quantity=0)
        assert exc_info.value.field == "quantity"

    def test_due_date_must_be_future(self, make_borrow):
        with pytest.raises(FieldValidationError) as exc_info:
            make_borrow(due_date=datetime.now(timezone.utc) - timedelta(minutes=1))
        assert exc_info.value.field == "dueDate"
        assert exc_info.value.message == "Due date must be in the future"

    def test_naive_due_date_stored_as_utc(self, make_borrow):
        naive = (datetime.now(timezone.utc) + timedelta(days=1)).replace(tzinfo=None)
        assert make_borrow(due_date=naive).due_date.tzinfo == timezone.utc


# ─── Persistence ────────────────────────────────────────────────


class TestBookPersistence:
    @pytest.mark.asyncio
    async def test_defaults_and_timestamps(self, db_session):
        book = Book(
            title="Sapiens", author="Yuval Noah Harari", genre=Genre.HISTORY,
            isbn="9780062316097", copies=2,
        )
        db_session.add(book)
        await db_session.flush()
        await db_session.refresh(book)

        assert book.id is not None
        assert book.available is True
        assert book.created_at is not None
        assert book.updated_at is not None

    @pytest.mark.asyncio
    async def test_isbn_unique(self, db_session, make_book):
        db_session.add(make_book(isbn="9780062316097"))
        await db_session.flush()

        db_session.add(make_book(isbn="9780062316097"))
        with pytest.raises(IntegrityError):
            await db_session.flush()


class TestBorrowPersistence:
    @pytest.mark.asyncio
    async def test_borrow_may_reference_deleted_book(self, db_session, make_book, make_borrow):
        book = make_book()
        db_session.add(book)
        await db_session.flush()
        db_session.add(make_borrow(book_id=book.id, quantity=2))
        await db_session.flush()

        await db_session.delete(book)
        await db_session.flush()

        rows = (await db_session.execute(select(Borrow))).scalars().all()
        assert len(rows) == 1
