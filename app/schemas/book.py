from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field
from pydantic_core import PydanticCustomError

from app.db.models import Genre, ISBN_PATTERN
from app.schemas.common import CamelModel


def _check_isbn(value: str) -> str:
    if not ISBN_PATTERN.match(value):
        raise PydanticCustomError("invalid_string", "Please enter a valid ISBN")
    return value


Isbn = Annotated[str, Field(min_length=1), AfterValidator(_check_isbn)]


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    genre: Genre
    isbn: Isbn
    copies: int = Field(..., ge=0)
    description: Optional[str] = None
    available: bool = True

    model_config = {"str_strip_whitespace": True}


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    genre: Optional[Genre] = None
    isbn: Optional[Isbn] = None
    copies: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    available: Optional[bool] = None

    model_config = {"str_strip_whitespace": True}


class BookResponse(CamelModel):
    id: str
    title: str
    author: str
    genre: Genre
    isbn: str
    copies: int
    description: Optional[str] = None
    available: bool
    created_at: datetime
    updated_at: datetime
