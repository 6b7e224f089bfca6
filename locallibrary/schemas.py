from datetime import date, datetime
from typing import Annotated, Optional, List, Literal

from markupsafe import Markup
from pydantic import AfterValidator, BaseModel, ConfigDict, Field


STATUSES = ("Available", "Maintenance", "Loaned", "Reserved")
DEFAULT_STATUS = "Maintenance"

Status = Literal["Available", "Maintenance", "Loaned", "Reserved"]

# Text the forms stored HTML-escaped. Markup keeps templates from escaping
# it a second time.
StoredText = Annotated[str, AfterValidator(Markup)]


def format_date(value) -> str:
    """Render a date the way list and detail pages show it, e.g. 'Jan 1, 2024'."""
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


class Record(BaseModel):
    """
    Base schema for records read back from the database.

    Internal Working:
    - from_attributes=True lets model_validate() read ORM objects
    - schemas are built while the session is still open, so views never
      touch lazy ORM state
    """

    model_config = ConfigDict(from_attributes=True)

    id: str


class Genre(Record):
    name: StoredText

    @property
    def url(self) -> str:
        return f"/catalog/genre/{self.id}"


class Author(Record):
    first_name: StoredText
    family_name: StoredText
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None

    @property
    def name(self) -> str:
        return Markup("{}, {}").format(self.family_name, self.first_name)

    @property
    def lifespan(self) -> str:
        if not self.date_of_birth and not self.date_of_death:
            return ""
        return f"{format_date(self.date_of_birth)} - {format_date(self.date_of_death)}"

    @property
    def date_of_birth_formatted(self) -> str:
        return format_date(self.date_of_birth)

    @property
    def date_of_death_formatted(self) -> str:
        return format_date(self.date_of_death)

    @property
    def url(self) -> str:
        return f"/catalog/author/{self.id}"


class BookTitle(Record):
    """Projection used to fill the book choice list on copy forms."""

    title: StoredText


class Book(Record):
    title: StoredText
    author_id: str
    summary: StoredText
    isbn: StoredText
    genre_ids: List[str] = []

    @property
    def url(self) -> str:
        return f"/catalog/book/{self.id}"


class BookExpanded(Book):
    """
    Book with its references resolved.

    author is None when the stored author id no longer resolves; genres
    that no longer exist are left out.
    """

    author: Optional[Author] = None
    genres: List[Genre] = []


class BookInstance(Record):
    book_id: str
    imprint: StoredText
    status: Status = DEFAULT_STATUS
    due_back: datetime

    @property
    def url(self) -> str:
        return f"/catalog/bookinstance/{self.id}"

    @property
    def due_back_formatted(self) -> str:
        return format_date(self.due_back)


class BookInstanceExpanded(BookInstance):
    book: Optional[Book] = None


class BookInstanceIn(BaseModel):
    """
    Validated input for creating or replacing a book copy.

    Only forms.bookinstance_from_form() builds these from submitted data.
    due_back left as None lets the model default apply.
    """

    book_id: str = Field(..., min_length=1, max_length=64)
    imprint: str = Field(..., min_length=1, max_length=250)
    status: Status = DEFAULT_STATUS
    due_back: Optional[datetime] = None


class BookIn(BaseModel):
    """Validated input for creating or replacing a book."""

    title: str = Field(..., min_length=1, max_length=250)
    author_id: str = Field(..., min_length=1, max_length=64)
    summary: str = Field(..., min_length=1)
    isbn: str = Field(..., min_length=1, max_length=64)
    genre_ids: List[str] = []


class AuthorIn(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    family_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None


class GenreIn(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
