import pytest
from fastapi.testclient import TestClient

from locallibrary import crud, schemas
from locallibrary.config import Settings
from locallibrary.endpoints import create_app


class Seeder:
    """
    Writes fixture records straight through crud, bypassing the forms.

    Each method returns the stored record schema.
    """

    def __init__(self, db):
        self.db = db

    def read(self, fn, *args):
        with self.db.session() as session:
            return fn(session, *args)

    def author(self, first_name="Isaac", family_name="Asimov", **kwargs):
        data = schemas.AuthorIn(first_name=first_name, family_name=family_name, **kwargs)
        return self.read(crud.create_author, data)

    def genre(self, name="Science Fiction"):
        return self.read(crud.create_genre, schemas.GenreIn(name=name))

    def book(self, title="Foundation", author=None, genres=(), summary="A summary", isbn="9780553293357"):
        author = author or self.author()
        data = schemas.BookIn(
            title=title,
            author_id=author.id,
            summary=summary,
            isbn=isbn,
            genre_ids=[g.id for g in genres],
        )
        return self.read(crud.create_book, data)

    def bookinstance(self, book=None, imprint="Gnome Press, 1951", status="Available", due_back=None):
        book = book or self.book()
        data = schemas.BookInstanceIn(
            book_id=book.id, imprint=imprint, status=status, due_back=due_back
        )
        return self.read(crud.create_bookinstance, data)


@pytest.fixture
def settings(tmp_path):
    """
    Settings pointing at a fresh SQLite file for each test.

    environment is not "development", so error pages hide details unless
    a test asks otherwise.
    """
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        environment="test",
        log_level="WARNING",
        db_timeout=5,
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.db.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def db(app):
    return app.state.db


@pytest.fixture
def seed(db):
    return Seeder(db)
