"""
WTForms building blocks shared by the catalog forms.

Filters run on submitted data before validation: strip trims whitespace,
escape_html HTML-escapes text into markupsafe.Markup so templates render
it exactly once. IsoDateTimeField parses ISO-8601 input while the form is
processed, reporting an unparseable value through its own message.
"""
from datetime import datetime, timezone

from dateutil.parser import isoparse
from markupsafe import escape
from wtforms.fields import Field
from wtforms.validators import ValidationError
from wtforms.widgets import TextInput


def strip(value):
    return value.strip() if isinstance(value, str) else value


def escape_html(value):
    """Escape &, <, >, " and ' into Markup."""
    if value is None:
        return value
    return escape(value)


def escape_each(values):
    return [escape(v) for v in values or []]


def parse_iso8601(value: str, as_date: bool = False):
    """
    Parse an ISO-8601 date or datetime.

    Datetimes carrying an offset are converted to naive UTC. Raises
    ValueError or OverflowError for input that does not parse or falls
    outside the supported range.
    """
    parsed = isoparse(value)
    if as_date:
        return parsed.date()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class IsoDateTimeField(Field):
    """
    A text input holding an ISO-8601 date or datetime.

    Empty input leaves data as None; pair with Optional() for fields that
    may be omitted.
    """

    widget = TextInput()

    def __init__(self, label=None, validators=None, message="Not a valid date", as_date=False, **kwargs):
        super().__init__(label, validators, **kwargs)
        self.message = message
        self.as_date = as_date

    def _value(self):
        if self.raw_data:
            return self.raw_data[0]
        if isinstance(self.data, datetime):
            return self.data.strftime("%Y-%m-%d")
        return self.data.isoformat() if self.data else ""

    def process_formdata(self, valuelist):
        if not valuelist or not valuelist[0].strip():
            self.data = None
            return
        try:
            self.data = parse_iso8601(valuelist[0].strip(), self.as_date)
        except (ValueError, OverflowError):
            self.data = None
            raise ValueError(self.message)


class MultiValueField(Field):
    """An input that may repeat, such as a group of checkboxes; data is a list."""

    def process_formdata(self, valuelist):
        self.data = list(valuelist)

    def _value(self):
        return self.data or []


class Alphanumeric:
    def __init__(self, message=None):
        self.message = message

    def __call__(self, form, field):
        if field.data and not field.data.isalnum():
            raise ValidationError(self.message or "Only letters and digits are allowed.")
