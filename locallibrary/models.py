import uuid
from datetime import datetime
from locallibrary.database import Base
from sqlalchemy import Column, String, Text, Date, DateTime, UniqueConstraint


def new_id() -> str:
    return uuid.uuid4().hex


class Author(Base):
    """
    Author model representing book authors.

    Books point at authors through Book.author_id; there is no database
    constraint, so deleting an author leaves its books in place.
    """

    __tablename__ = "authors"

    id = Column(String(32), primary_key=True, default=new_id)
    first_name = Column(String(100), nullable=False)
    family_name = Column(String(100), nullable=False, index=True)
    date_of_birth = Column(Date, nullable=True)
    date_of_death = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


class Genre(Base):
    __tablename__ = "genres"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(250), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


class Book(Base):
    """
    Book model representing library titles.

    Internal Working:
    - author_id holds the id of an Author row but is not a ForeignKey
    - genres are kept in the book_genres link table, one row per genre id
    - readers must cope with ids that no longer resolve
    """

    __tablename__ = "books"

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(250), nullable=False, index=True)
    author_id = Column(String(64), nullable=False, index=True)
    summary = Column(Text, nullable=False)
    isbn = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)


class BookGenre(Base):
    __tablename__ = "book_genres"
    __table_args__ = (UniqueConstraint("book_id", "genre_id"),)

    id = Column(String(32), primary_key=True, default=new_id)
    book_id = Column(String(64), nullable=False, index=True)
    genre_id = Column(String(64), nullable=False, index=True)


class BookInstance(Base):
    """
    BookInstance model representing a physical copy of a book.

    Business Logic:
    - status is one of Available, Maintenance, Loaned, Reserved
    - new copies start in Maintenance
    - due_back defaults to the creation time
    """

    __tablename__ = "book_instances"

    id = Column(String(32), primary_key=True, default=new_id)
    book_id = Column(String(64), nullable=False, index=True)
    imprint = Column(String(250), nullable=False)
    status = Column(String(20), nullable=False, default="Maintenance", index=True)
    due_back = Column(DateTime, nullable=False, default=datetime.now)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
