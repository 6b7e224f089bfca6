from datetime import date, datetime

import pytest
from markupsafe import Markup
from pydantic import ValidationError as SchemaError
from starlette.datastructures import FormData

from locallibrary import forms, schemas
from locallibrary.validators import parse_iso8601


def test_text_is_stripped_then_escaped():
    result = forms.check(forms.GenreForm(FormData({"name": "  Tom & Jerry  "})))

    assert result.ok
    assert result.values["name"] == "Tom &amp; Jerry"
    assert isinstance(result.values["name"], Markup)


def test_field_reports_first_error_only():
    """
    Test a failing field reports one error in declaration order.

    Verifies:
    - an empty first name fails its length check, not the alphanumeric one
    - the echoed value is the submitted value
    - later fields still run
    """
    result = forms.check(
        forms.AuthorForm(FormData({"first_name": " ", "family_name": "O Brien"}))
    )

    assert [(e.field, e.msg, e.value) for e in result.errors] == [
        ("first_name", "First name must be specified.", " "),
        ("family_name", "Family name has non-alphanumeric characters.", "O Brien"),
    ]


def test_optional_fields_may_be_omitted():
    result, record = forms.bookinstance_from_form(
        FormData({"book": "abc", "imprint": "Penguin", "status": "", "due_back": ""})
    )

    assert result.ok
    assert record.status == schemas.DEFAULT_STATUS
    assert record.due_back is None


def test_missing_required_field_is_an_error():
    result, record = forms.bookinstance_from_form(FormData({"imprint": "Penguin"}))

    assert record is None
    assert [e.msg for e in result.errors] == ["Book must be specified"]


def test_status_outside_the_list_is_rejected():
    result, _ = forms.bookinstance_from_form(
        FormData({"book": "abc", "imprint": "Penguin", "status": "Lost"})
    )

    assert [e.msg for e in result.errors] == ["Invalid status"]


def test_repeated_genre_values_are_kept_and_escaped():
    result = forms.check(
        forms.BookForm(
            FormData(
                [
                    ("title", "T"),
                    ("author", "a1"),
                    ("summary", "S"),
                    ("isbn", "1"),
                    ("genre", "a<b"),
                    ("genre", "c"),
                ]
            )
        )
    )

    assert result.values["genre"] == ["a&lt;b", "c"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-01-01", datetime(2024, 1, 1)),
        ("2024-01-01T10:30:00", datetime(2024, 1, 1, 10, 30)),
        ("2024-01-01T10:30:00+02:00", datetime(2024, 1, 1, 8, 30)),
    ],
)
def test_parse_iso8601(raw, expected):
    assert parse_iso8601(raw) == expected


def test_parse_iso8601_as_date():
    assert parse_iso8601("1920-01-02", as_date=True) == date(1920, 1, 2)


@pytest.mark.parametrize(
    "raw",
    [
        "01/02/2024",
        "tomorrow",
        "2024-02-30",
        "0001-01-01T00:00:00+01:00",
        "9999-12-31T23:59:59-01:00",
    ],
)
def test_unusable_dates_are_field_errors(raw):
    result, record = forms.bookinstance_from_form(
        FormData({"book": "abc", "imprint": "Penguin", "due_back": raw})
    )

    assert record is None
    assert [(e.field, e.msg, e.value) for e in result.errors] == [("due_back", "Invalid date", raw)]


def test_bookinstance_form_builds_record():
    result, record = forms.bookinstance_from_form(
        FormData({"book": "abc", "imprint": "Penguin", "status": "Loaned", "due_back": "2024-01-01"})
    )

    assert result.ok
    assert record == schemas.BookInstanceIn(
        book_id="abc", imprint="Penguin", status="Loaned", due_back=datetime(2024, 1, 1)
    )


def test_bookinstance_form_no_record_on_error():
    result, record = forms.bookinstance_from_form(FormData({"book": "abc", "imprint": ""}))

    assert record is None
    assert [e.msg for e in result.errors] == ["Imprint must be specified"]


def test_book_form_drops_blank_and_duplicate_genres():
    _, record = forms.book_from_form(
        FormData(
            [
                ("title", "T"),
                ("author", "a1"),
                ("summary", "S"),
                ("isbn", "1"),
                ("genre", "g1"),
                ("genre", ""),
                ("genre", "g1"),
                ("genre", "g2"),
            ]
        )
    )

    assert record.genre_ids == ["g1", "g2"]


def test_genre_name_length_counts_escaped_text():
    _, ok = forms.genre_from_form(FormData({"name": "&" * 20}))
    result, too_long = forms.genre_from_form(FormData({"name": "&" * 21}))

    assert ok.name == "&amp;" * 20
    assert too_long is None
    assert result.errors[0].msg == "Genre name must contain at least 3 characters"


def test_author_form_builds_dates():
    _, record = forms.author_from_form(
        FormData({"first_name": "Isaac", "family_name": "Asimov", "date_of_birth": "1920-01-02"})
    )

    assert record == schemas.AuthorIn(
        first_name="Isaac", family_name="Asimov", date_of_birth=date(1920, 1, 2)
    )


def test_input_schemas_reject_invalid_values():
    """
    Test the input schemas enforce the same constraints as the forms.
    """
    with pytest.raises(SchemaError):
        schemas.BookInstanceIn(book_id="abc", imprint="Penguin", status="Lost")
    with pytest.raises(SchemaError):
        schemas.BookInstanceIn(book_id="abc", imprint="")
    with pytest.raises(SchemaError):
        schemas.BookInstanceIn(book_id="abc", imprint="x" * 251)
    with pytest.raises(SchemaError):
        schemas.GenreIn(name="SF")
    with pytest.raises(SchemaError):
        schemas.GenreIn(name="x" * 101)
    with pytest.raises(SchemaError):
        schemas.BookIn(title="T", author_id="a", summary="S", isbn="1" * 65)


def test_stored_text_reads_back_as_markup():
    genre = schemas.Genre(id="g1", name="Tom &amp; Jerry")

    assert isinstance(genre.name, Markup)
    assert str(Markup("<b>{}</b>").format(genre.name)) == "<b>Tom &amp; Jerry</b>"
