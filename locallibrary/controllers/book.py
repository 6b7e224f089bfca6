import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from locallibrary import crud, forms
from locallibrary.database import Database, get_db
from locallibrary.views import redirect, render


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["books"])


def not_found(book_id: str) -> HTTPException:
    logger.warning("Book %s not found", book_id)
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")


def _form_context(title, authors, genres, result):
    return {
        "title": title,
        "authors": authors,
        "genres": genres,
        "selected_author": result.values.get("author"),
        "selected_genres": result.values.get("genre", []),
        "errors": result.errors,
    }


@router.get("/books")
async def book_list(request: Request, db: Database = Depends(get_db)):
    books = await db.run(crud.list_books)
    return render(request, "book_list", {"title": "Book List", "book_list": books})


@router.get("/book/create")
async def book_create_get(request: Request, db: Database = Depends(get_db)):
    """Display the book form with every author and genre to pick from."""
    authors, genres = await db.gather((crud.list_authors,), (crud.list_genres,))
    return render(
        request,
        "book_form",
        {"title": "Create Book", "authors": authors, "genres": genres},
    )


@router.post("/book/create")
async def book_create_post(request: Request, db: Database = Depends(get_db)):
    result, record = forms.book_from_form(await request.form())

    if record is None:
        authors, genres = await db.gather((crud.list_authors,), (crud.list_genres,))
        context = _form_context("Create Book", authors, genres, result)
        context["book"] = result.values
        return render(request, "book_form", context)

    book = await db.run(crud.create_book, record)
    logger.info("Created book %s", book.id)
    return redirect(book.url)


@router.get("/book/{book_id}")
async def book_detail(book_id: str, request: Request, db: Database = Depends(get_db)):
    """
    Display a book with its author, genres and copies.

    Internal Working:
    1. The book and its copies are read at the same time
    2. An author id that no longer resolves shows as "unknown author"

    Args:
        book_id: Id of the book from the URL
        db: Persistence handle (injected)

    Returns:
        The rendered detail page, titled with the book's title

    Raises:
        HTTPException: 404 if the book does not exist
    """
    book, instances = await db.gather(
        (crud.get_book, book_id),
        (crud.list_bookinstances_for_book, book_id),
    )
    if book is None:
        raise not_found(book_id)

    return render(
        request,
        "book_detail",
        {"title": book.title, "book": book, "book_instances": instances},
    )


@router.get("/book/{book_id}/delete")
async def book_delete_get(book_id: str, request: Request, db: Database = Depends(get_db)):
    book, instances = await db.gather(
        (crud.get_book, book_id),
        (crud.list_bookinstances_for_book, book_id),
    )
    return render(
        request,
        "book_delete",
        {"title": "Delete Book", "book": book, "book_instances": instances},
    )


@router.post("/book/{book_id}/delete")
async def book_delete_post(book_id: str, request: Request, db: Database = Depends(get_db)):
    """
    Delete the book named by the bookid form field.

    Copies of the book are not removed; their pages show the book as
    deleted.
    """
    form = await request.form()
    target = form.get("bookid")

    book = await db.run(crud.get_book, target) if target else None
    if book is None:
        logger.info("Book %s already gone, nothing to delete", target)
    else:
        await db.run(crud.delete_book, target)
        logger.info("Deleted book %s", target)
    return redirect("/catalog/books")


@router.get("/book/{book_id}/update")
async def book_update_get(book_id: str, request: Request, db: Database = Depends(get_db)):
    """
    Display the book form with the stored values and every choice.

    Args:
        book_id: Id of the book from the URL
        db: Persistence handle (injected)

    Returns:
        The rendered form with the book's author selected and its genres
        checked

    Raises:
        HTTPException: 404 if the book does not exist
    """
    book, authors, genres = await db.gather(
        (crud.get_book, book_id),
        (crud.list_authors,),
        (crud.list_genres,),
    )
    if book is None:
        raise not_found(book_id)

    return render(
        request,
        "book_form",
        {
            "title": "Update Book",
            "authors": authors,
            "genres": genres,
            "selected_author": book.author_id,
            "selected_genres": book.genre_ids,
            "book": book,
        },
    )


@router.post("/book/{book_id}/update")
async def book_update_post(book_id: str, request: Request, db: Database = Depends(get_db)):
    """
    Handle the book update form.

    Args:
        book_id: Id of the book from the URL
        db: Persistence handle (injected)

    Returns:
        A 302 redirect to the book's page, or the form again with the
        submitted values and errors

    Raises:
        NoResultFound: the book was deleted after the form was shown
    """
    result, record = forms.book_from_form(await request.form())

    if record is None:
        authors, genres = await db.gather((crud.list_authors,), (crud.list_genres,))
        context = _form_context("Update Book", authors, genres, result)
        context["book"] = {**result.values, "id": book_id}
        return render(request, "book_form", context)

    book = await db.run(crud.update_book, book_id, record)
    logger.info("Updated book %s", book.id)
    return redirect(book.url)
