import time
import asyncio
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from locallibrary.config import Settings, configure_logging
from locallibrary.controllers import author, book, bookinstance, catalog, genre
from locallibrary.database import Database
from locallibrary.views import render


logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


def _error_page(request: Request, status_code: int, message: str, exc: Exception = None):
    """
    Render error.html for a failed request.

    Security headers are set here too: unhandled errors are answered by
    Starlette's ServerErrorMiddleware, outside the access_log middleware.
    """
    settings = request.app.state.settings
    response = render(
        request,
        "error",
        {
            "title": "Error",
            "status_code": status_code,
            "message": message,
            "error": repr(exc) if settings.debug and exc is not None else None,
        },
        status_code=status_code,
    )
    response.headers.update(SECURITY_HEADERS)
    return response


def _register_error_handlers(app: FastAPI):
    """
    Render every failure through the error template.

    Internal Working:
    - HTTPException covers not-found records (raised by the controllers)
      and unknown routes or methods (raised by the router)
    - SQLAlchemyError is any database failure, including updating a
      record that vanished
    - asyncio.TimeoutError means a database call ran past DB_TIMEOUT
    - details of unexpected errors only show outside production
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error_page(request, exc.status_code, str(exc.detail))

    @app.exception_handler(SQLAlchemyError)
    async def database_error(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        message = str(exc) if request.app.state.settings.debug else "Internal Server Error"
        return _error_page(request, status.HTTP_500_INTERNAL_SERVER_ERROR, message, exc)

    @app.exception_handler(asyncio.TimeoutError)
    async def timeout_error(request: Request, exc: asyncio.TimeoutError):
        logger.error("Database call timed out on %s %s", request.method, request.url.path)
        return _error_page(request, status.HTTP_504_GATEWAY_TIMEOUT, "Database timed out", exc)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = str(exc) if request.app.state.settings.debug else "Internal Server Error"
        return _error_page(request, status.HTTP_500_INTERNAL_SERVER_ERROR, message, exc)


def create_app(settings: Settings = None) -> FastAPI:
    """
    Build the catalog application.

    The Database handle is created here, once, and stored on app.state;
    controllers reach it through the get_db dependency.
    """
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title="Local Library",
        description="Library catalog of books, authors, genres and book copies",
        version="1.0.0",
        debug=False,
    )
    app.state.settings = settings
    app.state.db = Database(settings.database_url, timeout=settings.db_timeout)
    app.state.db.create_all()

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        logger.info(
            "%s %s %d %.1f ms",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    _register_error_handlers(app)

    app.include_router(catalog.router)
    app.include_router(book.router)
    app.include_router(author.router)
    app.include_router(genre.router)
    app.include_router(bookinstance.router)

    return app


if __name__ == "__main__":
    import os
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
