from fastapi import APIRouter, Depends, Request

from locallibrary import crud
from locallibrary.database import Database, get_db
from locallibrary.views import redirect, render


router = APIRouter(tags=["catalog"])


@router.get("/")
async def home():
    return redirect("/catalog")


@router.get("/catalog")
async def index(request: Request, db: Database = Depends(get_db)):
    """
    Display the site home page with record counts.

    All five counts are read concurrently.
    """
    books, copies, available, authors, genres = await db.gather(
        (crud.count_books,),
        (crud.count_bookinstances,),
        (crud.count_bookinstances, "Available"),
        (crud.count_authors,),
        (crud.count_genres,),
    )
    return render(
        request,
        "index",
        {
            "title": "Local Library Home",
            "data": {
                "book_count": books,
                "book_instance_count": copies,
                "book_instance_available_count": available,
                "author_count": authors,
                "genre_count": genres,
            },
        },
    )
