import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from locallibrary import crud, forms
from locallibrary.database import Database, get_db
from locallibrary.views import redirect, render


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["genres"])


def not_found(genre_id: str) -> HTTPException:
    logger.warning("Genre %s not found", genre_id)
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Genre not found")


@router.get("/genres")
async def genre_list(request: Request, db: Database = Depends(get_db)):
    genres = await db.run(crud.list_genres)
    return render(request, "genre_list", {"title": "Genre List", "genre_list": genres})


@router.get("/genre/create")
async def genre_create_get(request: Request):
    return render(request, "genre_form", {"title": "Create Genre"})


@router.post("/genre/create")
async def genre_create_post(request: Request, db: Database = Depends(get_db)):
    """
    Handle the genre form.

    A genre whose name matches an existing one (ignoring case) is not
    created again; the browser is sent to the existing genre instead.
    """
    result, record = forms.genre_from_form(await request.form())

    if record is None:
        return render(
            request,
            "genre_form",
            {"title": "Create Genre", "genre": result.values, "errors": result.errors},
        )

    existing = await db.run(crud.find_genre_by_name, record.name)
    if existing is not None:
        return redirect(existing.url)

    genre = await db.run(crud.create_genre, record)
    logger.info("Created genre %s", genre.id)
    return redirect(genre.url)


@router.get("/genre/{genre_id}")
async def genre_detail(genre_id: str, request: Request, db: Database = Depends(get_db)):
    """
    Display a genre and the books listing it.

    Args:
        genre_id: Id of the genre from the URL
        db: Persistence handle (injected)

    Returns:
        The rendered detail page

    Raises:
        HTTPException: 404 if the genre does not exist
    """
    genre, books = await db.gather(
        (crud.get_genre, genre_id),
        (crud.list_books_in_genre, genre_id),
    )
    if genre is None:
        raise not_found(genre_id)

    return render(
        request,
        "genre_detail",
        {"title": "Genre Detail", "genre": genre, "genre_books": books},
    )


@router.get("/genre/{genre_id}/delete")
async def genre_delete_get(genre_id: str, request: Request, db: Database = Depends(get_db)):
    genre, books = await db.gather(
        (crud.get_genre, genre_id),
        (crud.list_books_in_genre, genre_id),
    )
    return render(
        request,
        "genre_delete",
        {"title": "Delete Genre", "genre": genre, "genre_books": books},
    )


@router.post("/genre/{genre_id}/delete")
async def genre_delete_post(genre_id: str, request: Request, db: Database = Depends(get_db)):
    form = await request.form()
    target = form.get("genreid")

    genre = await db.run(crud.get_genre, target) if target else None
    if genre is None:
        logger.info("Genre %s already gone, nothing to delete", target)
    else:
        await db.run(crud.delete_genre, target)
        logger.info("Deleted genre %s", target)
    return redirect("/catalog/genres")


@router.get("/genre/{genre_id}/update")
async def genre_update_get(genre_id: str, request: Request, db: Database = Depends(get_db)):
    """
    Display the genre form filled with the stored name.

    Raises:
        HTTPException: 404 if the genre does not exist
    """
    genre = await db.run(crud.get_genre, genre_id)
    if genre is None:
        raise not_found(genre_id)

    return render(request, "genre_form", {"title": "Update Genre", "genre": genre})


@router.post("/genre/{genre_id}/update")
async def genre_update_post(genre_id: str, request: Request, db: Database = Depends(get_db)):
    result, record = forms.genre_from_form(await request.form())

    if record is None:
        return render(
            request,
            "genre_form",
            {
                "title": "Update Genre",
                "genre": {**result.values, "id": genre_id},
                "errors": result.errors,
            },
        )

    genre = await db.run(crud.update_genre, genre_id, record)
    logger.info("Updated genre %s", genre.id)
    return redirect(genre.url)
