"""
Queries and commands against the catalog tables.

Every function takes an open Session first so it can be handed to
Database.run() or Database.gather(). Reads return pydantic schemas built
while the session is open; writes take the validated *In schemas only.
"""
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session

from locallibrary import models, schemas


def _genre_ids_for(db: Session, book_ids: List[str]) -> Dict[str, List[str]]:
    links = {book_id: [] for book_id in book_ids}
    if not book_ids:
        return links
    rows = db.query(models.BookGenre).filter(models.BookGenre.book_id.in_(book_ids)).all()
    for row in rows:
        links[row.book_id].append(row.genre_id)
    return links


def _books_by_id(db: Session, book_ids) -> Dict[str, schemas.Book]:
    ids = list(dict.fromkeys(book_ids))
    if not ids:
        return {}
    books = db.query(models.Book).filter(models.Book.id.in_(ids)).all()
    genre_ids = _genre_ids_for(db, [b.id for b in books])
    return {b.id: _to_book(b, genre_ids[b.id]) for b in books}


def _to_book(book: models.Book, genre_ids: List[str]) -> schemas.Book:
    return schemas.Book(
        id=book.id,
        title=book.title,
        author_id=book.author_id,
        summary=book.summary,
        isbn=book.isbn,
        genre_ids=genre_ids,
    )


def _require(db: Session, model, record_id: str):
    """Fetch a row that must exist for an update to proceed."""
    row = db.get(model, record_id)
    if row is None:
        raise NoResultFound(f"No {model.__tablename__} row with id {record_id}")
    return row


def _remove(db: Session, model, record_id: Optional[str]) -> bool:
    if not record_id:
        return False
    row = db.get(model, record_id)
    if row is None:
        return False
    db.delete(row)
    return True


# Book instances


def list_bookinstances(db: Session) -> List[schemas.BookInstanceExpanded]:
    """
    All copies in insertion order, each with its book resolved.

    Internal Working:
    - one query for the copies, one for the distinct books they reference
    - a copy whose book no longer exists gets book=None
    """
    instances = db.query(models.BookInstance).order_by(models.BookInstance.created_at).all()
    books = _books_by_id(db, [i.book_id for i in instances])
    return [
        schemas.BookInstanceExpanded.model_validate(i).model_copy(
            update={"book": books.get(i.book_id)}
        )
        for i in instances
    ]


def get_bookinstance(db: Session, instance_id: str) -> Optional[schemas.BookInstanceExpanded]:
    instance = db.get(models.BookInstance, instance_id)
    if instance is None:
        return None
    books = _books_by_id(db, [instance.book_id])
    return schemas.BookInstanceExpanded.model_validate(instance).model_copy(
        update={"book": books.get(instance.book_id)}
    )


def list_bookinstances_for_book(db: Session, book_id: str) -> List[schemas.BookInstance]:
    instances = (
        db.query(models.BookInstance)
        .filter(models.BookInstance.book_id == book_id)
        .order_by(models.BookInstance.created_at)
        .all()
    )
    return [schemas.BookInstance.model_validate(i) for i in instances]


def create_bookinstance(db: Session, data: schemas.BookInstanceIn) -> schemas.BookInstance:
    instance = models.BookInstance(**data.model_dump(exclude_none=True))
    db.add(instance)
    db.flush()
    db.refresh(instance)
    return schemas.BookInstance.model_validate(instance)


def update_bookinstance(
    db: Session, instance_id: str, data: schemas.BookInstanceIn
) -> schemas.BookInstance:
    """
    Replace every stored field of a copy with the validated values.

    A missing due_back resets the date to now, as on creation.
    Raises NoResultFound if the copy is gone.
    """
    instance = _require(db, models.BookInstance, instance_id)
    values = data.model_dump()
    if values["due_back"] is None:
        values["due_back"] = datetime.now()
    for key, value in values.items():
        setattr(instance, key, value)
    db.flush()
    return schemas.BookInstance.model_validate(instance)


def delete_bookinstance(db: Session, instance_id: Optional[str]) -> bool:
    return _remove(db, models.BookInstance, instance_id)


def count_bookinstances(db: Session, status: Optional[str] = None) -> int:
    query = db.query(func.count(models.BookInstance.id))
    if status:
        query = query.filter(models.BookInstance.status == status)
    return query.scalar()


# Books


def list_book_titles(db: Session) -> List[schemas.BookTitle]:
    """Id and title of every book, for choice lists."""
    rows = db.query(models.Book.id, models.Book.title).order_by(models.Book.title).all()
    return [schemas.BookTitle(id=row.id, title=row.title) for row in rows]


def list_books(db: Session) -> List[schemas.BookExpanded]:
    books = db.query(models.Book).order_by(models.Book.created_at).all()
    authors = _authors_by_id(db, [b.author_id for b in books])
    genre_ids = _genre_ids_for(db, [b.id for b in books])
    return [
        schemas.BookExpanded(
            **_to_book(b, genre_ids[b.id]).model_dump(), author=authors.get(b.author_id)
        )
        for b in books
    ]


def get_book(db: Session, book_id: str) -> Optional[schemas.BookExpanded]:
    """
    A single book with its author and genres resolved.

    Genre ids that no longer resolve are dropped from genres but kept in
    genre_ids.
    """
    book = db.get(models.Book, book_id)
    if book is None:
        return None
    genre_ids = _genre_ids_for(db, [book.id])[book.id]
    genres = []
    if genre_ids:
        found = db.query(models.Genre).filter(models.Genre.id.in_(genre_ids)).all()
        by_id = {g.id: schemas.Genre.model_validate(g) for g in found}
        genres = [by_id[g] for g in genre_ids if g in by_id]
    authors = _authors_by_id(db, [book.author_id])
    return schemas.BookExpanded(
        **_to_book(book, genre_ids).model_dump(),
        author=authors.get(book.author_id),
        genres=genres,
    )


def list_books_by_author(db: Session, author_id: str) -> List[schemas.Book]:
    books = (
        db.query(models.Book)
        .filter(models.Book.author_id == author_id)
        .order_by(models.Book.title)
        .all()
    )
    genre_ids = _genre_ids_for(db, [b.id for b in books])
    return [_to_book(b, genre_ids[b.id]) for b in books]


def list_books_in_genre(db: Session, genre_id: str) -> List[schemas.Book]:
    books = (
        db.query(models.Book)
        .join(models.BookGenre, models.BookGenre.book_id == models.Book.id)
        .filter(models.BookGenre.genre_id == genre_id)
        .order_by(models.Book.title)
        .all()
    )
    genre_ids = _genre_ids_for(db, [b.id for b in books])
    return [_to_book(b, genre_ids[b.id]) for b in books]


def _set_genres(db: Session, book_id: str, genre_ids: List[str]):
    db.query(models.BookGenre).filter(models.BookGenre.book_id == book_id).delete(
        synchronize_session=False
    )
    for genre_id in genre_ids:
        db.add(models.BookGenre(book_id=book_id, genre_id=genre_id))


def create_book(db: Session, data: schemas.BookIn) -> schemas.Book:
    values = data.model_dump(exclude={"genre_ids"})
    book = models.Book(**values)
    db.add(book)
    db.flush()
    _set_genres(db, book.id, data.genre_ids)
    db.flush()
    return _to_book(book, data.genre_ids)


def update_book(db: Session, book_id: str, data: schemas.BookIn) -> schemas.Book:
    book = _require(db, models.Book, book_id)
    for key, value in data.model_dump(exclude={"genre_ids"}).items():
        setattr(book, key, value)
    _set_genres(db, book.id, data.genre_ids)
    db.flush()
    return _to_book(book, data.genre_ids)


def delete_book(db: Session, book_id: Optional[str]) -> bool:
    """Delete a book and its genre links. Its copies are left untouched."""
    removed = _remove(db, models.Book, book_id)
    if removed:
        db.query(models.BookGenre).filter(models.BookGenre.book_id == book_id).delete(
            synchronize_session=False
        )
    return removed


def count_books(db: Session) -> int:
    return db.query(func.count(models.Book.id)).scalar()


# Authors


def _authors_by_id(db: Session, author_ids) -> Dict[str, schemas.Author]:
    ids = list(dict.fromkeys(author_ids))
    if not ids:
        return {}
    authors = db.query(models.Author).filter(models.Author.id.in_(ids)).all()
    return {a.id: schemas.Author.model_validate(a) for a in authors}


def list_authors(db: Session) -> List[schemas.Author]:
    authors = (
        db.query(models.Author)
        .order_by(models.Author.family_name, models.Author.first_name)
        .all()
    )
    return [schemas.Author.model_validate(a) for a in authors]


def get_author(db: Session, author_id: str) -> Optional[schemas.Author]:
    author = db.get(models.Author, author_id)
    return schemas.Author.model_validate(author) if author is not None else None


def create_author(db: Session, data: schemas.AuthorIn) -> schemas.Author:
    author = models.Author(**data.model_dump())
    db.add(author)
    db.flush()
    return schemas.Author.model_validate(author)


def update_author(db: Session, author_id: str, data: schemas.AuthorIn) -> schemas.Author:
    author = _require(db, models.Author, author_id)
    for key, value in data.model_dump().items():
        setattr(author, key, value)
    db.flush()
    return schemas.Author.model_validate(author)


def delete_author(db: Session, author_id: Optional[str]) -> bool:
    return _remove(db, models.Author, author_id)


def count_authors(db: Session) -> int:
    return db.query(func.count(models.Author.id)).scalar()


# Genres


def list_genres(db: Session) -> List[schemas.Genre]:
    genres = db.query(models.Genre).order_by(models.Genre.name).all()
    return [schemas.Genre.model_validate(g) for g in genres]


def get_genre(db: Session, genre_id: str) -> Optional[schemas.Genre]:
    genre = db.get(models.Genre, genre_id)
    return schemas.Genre.model_validate(genre) if genre is not None else None


def find_genre_by_name(db: Session, name: str) -> Optional[schemas.Genre]:
    genre = (
        db.query(models.Genre)
        .filter(func.lower(models.Genre.name) == name.lower())
        .order_by(models.Genre.created_at)
        .first()
    )
    return schemas.Genre.model_validate(genre) if genre is not None else None


def create_genre(db: Session, data: schemas.GenreIn) -> schemas.Genre:
    genre = models.Genre(**data.model_dump())
    db.add(genre)
    db.flush()
    return schemas.Genre.model_validate(genre)


def update_genre(db: Session, genre_id: str, data: schemas.GenreIn) -> schemas.Genre:
    genre = _require(db, models.Genre, genre_id)
    genre.name = data.name
    db.flush()
    return schemas.Genre.model_validate(genre)


def delete_genre(db: Session, genre_id: Optional[str]) -> bool:
    return _remove(db, models.Genre, genre_id)


def count_genres(db: Session) -> int:
    return db.query(func.count(models.Genre.id)).scalar()
