import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from markupsafe import Markup

from locallibrary import crud, forms
from locallibrary.database import Database, get_db
from locallibrary.views import redirect, render


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["bookinstances"])


def not_found(instance_id: str) -> HTTPException:
    logger.warning("Book copy %s not found", instance_id)
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book copy not found")


@router.get("/bookinstances")
async def bookinstance_list(request: Request, db: Database = Depends(get_db)):
    """Display list of all book copies, each with its book."""
    instances = await db.run(crud.list_bookinstances)
    return render(
        request,
        "bookinstance_list",
        {"title": "Book Instance List", "bookinstance_list": instances},
    )


@router.get("/bookinstance/create")
async def bookinstance_create_get(request: Request, db: Database = Depends(get_db)):
    books = await db.run(crud.list_book_titles)
    return render(
        request, "bookinstance_form", {"title": "Create BookInstance", "book_list": books}
    )


@router.post("/bookinstance/create")
async def bookinstance_create_post(request: Request, db: Database = Depends(get_db)):
    """
    Handle the copy form submission.

    Internal Working:
    1. The submitted fields run through forms.BookInstanceForm
    2. On errors the form is rendered again with the sanitized values,
       the book choices and the error list; nothing is stored
    3. Otherwise the copy is stored and the browser is sent to its page
    """
    result, record = forms.bookinstance_from_form(await request.form())

    if record is None:
        books = await db.run(crud.list_book_titles)
        return render(
            request,
            "bookinstance_form",
            {
                "title": "Create BookInstance",
                "book_list": books,
                "selected_book": result.values.get("book"),
                "errors": result.errors,
                "bookinstance": result.values,
            },
        )

    instance = await db.run(crud.create_bookinstance, record)
    logger.info("Created book copy %s", instance.id)
    return redirect(instance.url)


@router.get("/bookinstance/{instance_id}")
async def bookinstance_detail(
    instance_id: str, request: Request, db: Database = Depends(get_db)
):
    """
    Display one book copy with its book resolved.

    Args:
        instance_id: Id of the copy from the URL
        db: Persistence handle (injected)

    Returns:
        The rendered detail page; a copy whose book was deleted shows it
        as "(deleted book)"

    Raises:
        HTTPException: 404 if the copy does not exist
    """
    instance = await db.run(crud.get_bookinstance, instance_id)
    if instance is None:
        raise not_found(instance_id)

    book_title = instance.book.title if instance.book else "(deleted book)"
    return render(
        request,
        "bookinstance_detail",
        {"title": Markup("Copy: {}").format(book_title), "bookinstance": instance},
    )


@router.get("/bookinstance/{instance_id}/delete")
async def bookinstance_delete_get(
    instance_id: str, request: Request, db: Database = Depends(get_db)
):
    """
    Display the delete confirmation page.

    A copy that does not exist still gets the page, which then says there
    is nothing to delete.
    """
    instance = await db.run(crud.get_bookinstance, instance_id)
    return render(
        request,
        "bookinstance_delete",
        {"title": "Delete Book Instance", "bookinstance": instance},
    )


@router.post("/bookinstance/{instance_id}/delete")
async def bookinstance_delete_post(
    instance_id: str, request: Request, db: Database = Depends(get_db)
):
    """
    Delete the copy named by the bookinstanceid form field.

    Deleting a copy that is already gone is not an error.
    """
    form = await request.form()
    target = form.get("bookinstanceid")

    instance = await db.run(crud.get_bookinstance, target) if target else None
    if instance is None:
        logger.info("Book copy %s already gone, nothing to delete", target)
    else:
        await db.run(crud.delete_bookinstance, target)
        logger.info("Deleted book copy %s", target)
    return redirect("/catalog/bookinstances")


@router.get("/bookinstance/{instance_id}/update")
async def bookinstance_update_get(
    instance_id: str, request: Request, db: Database = Depends(get_db)
):
    """
    Display the copy form filled with the stored values.

    The copy and the book choices are read at the same time.

    Args:
        instance_id: Id of the copy from the URL
        db: Persistence handle (injected)

    Returns:
        The rendered form titled "Update BookInstance"

    Raises:
        HTTPException: 404 if the copy does not exist
    """
    instance, books = await db.gather(
        (crud.get_bookinstance, instance_id),
        (crud.list_book_titles,),
    )
    if instance is None:
        raise not_found(instance_id)

    return render(
        request,
        "bookinstance_form",
        {
            "title": "Update BookInstance",
            "book_list": books,
            "selected_book": instance.book_id,
            "bookinstance": instance,
        },
    )


@router.post("/bookinstance/{instance_id}/update")
async def bookinstance_update_post(
    instance_id: str, request: Request, db: Database = Depends(get_db)
):
    """
    Handle the copy update form.

    Same validation as create. The stored copy is replaced as a whole and
    keeps its id; a copy removed in the meantime surfaces as a database
    error.
    """
    result, record = forms.bookinstance_from_form(await request.form())

    if record is None:
        books = await db.run(crud.list_book_titles)
        return render(
            request,
            "bookinstance_form",
            {
                "title": "Update BookInstance",
                "book_list": books,
                "selected_book": result.values.get("book"),
                "errors": result.errors,
                "bookinstance": {**result.values, "id": instance_id},
            },
        )

    instance = await db.run(crud.update_bookinstance, instance_id, record)
    logger.info("Updated book copy %s", instance.id)
    return redirect(instance.url)
