import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from locallibrary import crud, forms
from locallibrary.database import Database, get_db
from locallibrary.views import redirect, render


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["authors"])


def not_found(author_id: str) -> HTTPException:
    logger.warning("Author %s not found", author_id)
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Author not found")


@router.get("/authors")
async def author_list(request: Request, db: Database = Depends(get_db)):
    """Display all authors, sorted by family name."""
    authors = await db.run(crud.list_authors)
    return render(request, "author_list", {"title": "Author List", "author_list": authors})


@router.get("/author/create")
async def author_create_get(request: Request):
    return render(request, "author_form", {"title": "Create Author"})


@router.post("/author/create")
async def author_create_post(request: Request, db: Database = Depends(get_db)):
    result, record = forms.author_from_form(await request.form())

    if record is None:
        return render(
            request,
            "author_form",
            {"title": "Create Author", "author": result.values, "errors": result.errors},
        )

    author = await db.run(crud.create_author, record)
    logger.info("Created author %s", author.id)
    return redirect(author.url)


@router.get("/author/{author_id}")
async def author_detail(author_id: str, request: Request, db: Database = Depends(get_db)):
    """
    Display an author and the books naming them.

    Args:
        author_id: Id of the author from the URL
        db: Persistence handle (injected)

    Returns:
        The rendered detail page

    Raises:
        HTTPException: 404 if the author does not exist
    """
    author, books = await db.gather(
        (crud.get_author, author_id),
        (crud.list_books_by_author, author_id),
    )
    if author is None:
        raise not_found(author_id)

    return render(
        request,
        "author_detail",
        {"title": "Author Detail", "author": author, "author_books": books},
    )


@router.get("/author/{author_id}/delete")
async def author_delete_get(author_id: str, request: Request, db: Database = Depends(get_db)):
    author, books = await db.gather(
        (crud.get_author, author_id),
        (crud.list_books_by_author, author_id),
    )
    return render(
        request,
        "author_delete",
        {"title": "Delete Author", "author": author, "author_books": books},
    )


@router.post("/author/{author_id}/delete")
async def author_delete_post(author_id: str, request: Request, db: Database = Depends(get_db)):
    form = await request.form()
    target = form.get("authorid")

    author = await db.run(crud.get_author, target) if target else None
    if author is None:
        logger.info("Author %s already gone, nothing to delete", target)
    else:
        await db.run(crud.delete_author, target)
        logger.info("Deleted author %s", target)
    return redirect("/catalog/authors")


@router.get("/author/{author_id}/update")
async def author_update_get(author_id: str, request: Request, db: Database = Depends(get_db)):
    """
    Display the author form filled with the stored values.

    Raises:
        HTTPException: 404 if the author does not exist
    """
    author = await db.run(crud.get_author, author_id)
    if author is None:
        raise not_found(author_id)

    return render(request, "author_form", {"title": "Update Author", "author": author})


@router.post("/author/{author_id}/update")
async def author_update_post(author_id: str, request: Request, db: Database = Depends(get_db)):
    result, record = forms.author_from_form(await request.form())

    if record is None:
        return render(
            request,
            "author_form",
            {
                "title": "Update Author",
                "author": {**result.values, "id": author_id},
                "errors": result.errors,
            },
        )

    author = await db.run(crud.update_author, author_id, record)
    logger.info("Updated author %s", author.id)
    return redirect(author.url)
