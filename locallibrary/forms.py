"""
Catalog forms and their conversion into input schemas.

Each form is a wtforms.Form fed with the submitted FormData. A field
reports only its first error, fields report in the order they are
declared, and a field that failed echoes back the value as submitted.
"""
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field
from wtforms import Form, StringField, TextAreaField
from wtforms.validators import AnyOf, Length, Optional as OptionalValidator

from locallibrary import schemas
from locallibrary.validators import (
    Alphanumeric,
    IsoDateTimeField,
    MultiValueField,
    escape_each,
    escape_html,
    strip,
)


TEXT_FILTERS = [strip, escape_html]


class FormError(BaseModel):
    field: str
    msg: str
    value: Any = None


class FormResult(BaseModel):
    values: Dict[str, Any] = Field(default_factory=dict)
    errors: List[FormError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class BookInstanceForm(Form):
    book = StringField(
        "Book",
        filters=TEXT_FILTERS,
        validators=[Length(min=1, max=64, message="Book must be specified")],
    )
    imprint = StringField(
        "Imprint",
        filters=TEXT_FILTERS,
        validators=[
            Length(min=1, message="Imprint must be specified"),
            Length(max=250, message="Imprint must be at most 250 characters"),
        ],
    )
    status = StringField(
        "Status",
        filters=[escape_html],
        validators=[OptionalValidator(), AnyOf(schemas.STATUSES, message="Invalid status")],
    )
    due_back = IsoDateTimeField(
        "Date when book available", validators=[OptionalValidator()], message="Invalid date"
    )


class BookForm(Form):
    title = StringField(
        "Title",
        filters=TEXT_FILTERS,
        validators=[
            Length(min=1, message="Title must not be empty."),
            Length(max=250, message="Title must be at most 250 characters"),
        ],
    )
    author = StringField(
        "Author",
        filters=TEXT_FILTERS,
        validators=[Length(min=1, max=64, message="Author must not be empty.")],
    )
    summary = TextAreaField(
        "Summary",
        filters=TEXT_FILTERS,
        validators=[Length(min=1, message="Summary must not be empty.")],
    )
    isbn = StringField(
        "ISBN",
        filters=TEXT_FILTERS,
        validators=[
            Length(min=1, message="ISBN must not be empty"),
            Length(max=64, message="ISBN must be at most 64 characters"),
        ],
    )
    genre = MultiValueField("Genre", filters=[escape_each])


class AuthorForm(Form):
    first_name = StringField(
        "First Name",
        filters=TEXT_FILTERS,
        validators=[
            Length(min=1, max=100, message="First name must be specified."),
            Alphanumeric("First name has non-alphanumeric characters."),
        ],
    )
    family_name = StringField(
        "Family Name",
        filters=TEXT_FILTERS,
        validators=[
            Length(min=1, max=100, message="Family name must be specified."),
            Alphanumeric("Family name has non-alphanumeric characters."),
        ],
    )
    date_of_birth = IsoDateTimeField(
        "Date of birth",
        validators=[OptionalValidator()],
        message="Invalid date of birth",
        as_date=True,
    )
    date_of_death = IsoDateTimeField(
        "Date of death",
        validators=[OptionalValidator()],
        message="Invalid date of death",
        as_date=True,
    )


class GenreForm(Form):
    name = StringField(
        "Genre",
        filters=TEXT_FILTERS,
        validators=[
            Length(min=3, max=100, message="Genre name must contain at least 3 characters")
        ],
    )


def check(form: Form) -> FormResult:
    """
    Validate form and collect its values and errors.

    Internal Working:
    1. form.validate() runs every field's validator chain
    2. a field with errors contributes its first message and echoes the
       submitted value
    3. other fields contribute their filtered data
    """
    form.validate()
    result = FormResult()
    for field in form:
        if field.errors:
            submitted = field.raw_data[0] if field.raw_data else ""
            result.errors.append(FormError(field=field.name, msg=field.errors[0], value=submitted))
            result.values[field.name] = submitted
        else:
            result.values[field.name] = field.data
    return result


def bookinstance_from_form(formdata) -> Tuple[FormResult, Optional[schemas.BookInstanceIn]]:
    """
    Validate a submitted copy form.

    Returns the FormResult (sanitized values and errors) and, when there
    are no errors, the BookInstanceIn ready to be stored.
    """
    result = check(BookInstanceForm(formdata))
    if not result.ok:
        return result, None
    values = result.values
    record = schemas.BookInstanceIn(
        book_id=values["book"],
        imprint=values["imprint"],
        status=str(values.get("status") or schemas.DEFAULT_STATUS),
        due_back=values.get("due_back"),
    )
    return result, record


def book_from_form(formdata) -> Tuple[FormResult, Optional[schemas.BookIn]]:
    result = check(BookForm(formdata))
    if not result.ok:
        return result, None
    values = result.values
    record = schemas.BookIn(
        title=values["title"],
        author_id=values["author"],
        summary=values["summary"],
        isbn=values["isbn"],
        genre_ids=list(dict.fromkeys(g for g in values.get("genre") or [] if g)),
    )
    return result, record


def author_from_form(formdata) -> Tuple[FormResult, Optional[schemas.AuthorIn]]:
    result = check(AuthorForm(formdata))
    if not result.ok:
        return result, None
    return result, schemas.AuthorIn(**result.values)


def genre_from_form(formdata) -> Tuple[FormResult, Optional[schemas.GenreIn]]:
    result = check(GenreForm(formdata))
    if not result.ok:
        return result, None
    return result, schemas.GenreIn(name=result.values["name"])
