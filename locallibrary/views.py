from datetime import date, datetime
from pathlib import Path

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from locallibrary.schemas import STATUSES


TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def isodate(value) -> str:
    """Form value for a date input: YYYY-MM-DD, or whatever was submitted."""
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return value or ""


templates.env.filters["isodate"] = isodate
templates.env.globals["statuses"] = STATUSES


def render(request: Request, name: str, context: dict = None, status_code: int = 200):
    return templates.TemplateResponse(
        request, f"{name}.html", context or {}, status_code=status_code
    )


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)
