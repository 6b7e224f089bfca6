from locallibrary import crud


def test_list_genres_sorted(client, seed):
    seed.genre("Poetry")
    seed.genre("Fantasy")

    response = client.get("/catalog/genres")
    assert response.status_code == 200
    assert response.text.index(">Fantasy<") < response.text.index(">Poetry<")


def test_genre_detail(client, seed):
    genre = seed.genre("Fantasy")
    seed.book(title="Earthsea", genres=[genre])
    seed.book(title="Unrelated")

    response = client.get(f"/catalog/genre/{genre.id}")
    assert response.status_code == 200
    assert "Genre: Fantasy" in response.text
    assert ">Earthsea</a>" in response.text
    assert "Unrelated" not in response.text


def test_genre_detail_not_found(client):
    response = client.get("/catalog/genre/missing")
    assert response.status_code == 404
    assert "Genre not found" in response.text


def test_create_genre(client, db):
    response = client.post(
        "/catalog/genre/create", data={"name": "Fantasy"}, follow_redirects=False
    )
    assert response.status_code == 302

    with db.session() as session:
        genres = crud.list_genres(session)
    assert [g.name for g in genres] == ["Fantasy"]
    assert response.headers["location"] == genres[0].url


def test_create_genre_too_short(client, db):
    response = client.post("/catalog/genre/create", data={"name": "SF"}, follow_redirects=False)
    assert response.status_code == 200
    assert "Genre name must contain at least 3 characters" in response.text
    assert 'value="SF"' in response.text

    with db.session() as session:
        assert crud.count_genres(session) == 0


def test_create_existing_genre_redirects(client, seed, db):
    """
    Test submitting a name that already exists reuses that genre.
    """
    existing = seed.genre("Fantasy")

    response = client.post(
        "/catalog/genre/create", data={"name": "fantasy"}, follow_redirects=False
    )
    assert response.status_code == 302
    assert response.headers["location"] == existing.url
    with db.session() as session:
        assert crud.count_genres(session) == 1


def test_update_genre(client, seed, db):
    genre = seed.genre("Fantsy")

    response = client.post(
        f"/catalog/genre/{genre.id}/update", data={"name": "Fantasy"}, follow_redirects=False
    )
    assert response.status_code == 302
    assert response.headers["location"] == genre.url
    with db.session() as session:
        assert crud.get_genre(session, genre.id).name == "Fantasy"


def test_delete_genre_leaves_books(client, seed, db):
    genre = seed.genre("Fantasy")
    book = seed.book(title="Earthsea", genres=[genre])

    confirm = client.get(f"/catalog/genre/{genre.id}/delete")
    assert "Earthsea" in confirm.text

    response = client.post(
        f"/catalog/genre/{genre.id}/delete", data={"genreid": genre.id}, follow_redirects=False
    )
    assert response.status_code == 302
    assert response.headers["location"] == "/catalog/genres"

    with db.session() as session:
        assert crud.get_genre(session, genre.id) is None
        stored = crud.get_book(session, book.id)
    assert stored.genres == []
    assert stored.genre_ids == [genre.id]


def test_update_genre_form_not_found(client):
    response = client.get("/catalog/genre/missing/update")
    assert response.status_code == 404
    assert "Genre not found" in response.text


def test_update_genre_invalid_keeps_record(client, seed, db):
    genre = seed.genre("Fantasy")

    response = client.post(
        f"/catalog/genre/{genre.id}/update", data={"name": "SF"}, follow_redirects=False
    )
    assert response.status_code == 200
    assert "<title>Update Genre</title>" in response.text
    assert "Genre name must contain at least 3 characters" in response.text

    with db.session() as session:
        assert crud.get_genre(session, genre.id).name == "Fantasy"


def test_delete_genre_confirmation_missing(client):
    response = client.get("/catalog/genre/missing/delete")
    assert response.status_code == 200
    assert "There is nothing to delete." in response.text


def test_delete_genre_twice(client, seed):
    genre = seed.genre("Fantasy")

    for _ in range(2):
        response = client.post(
            f"/catalog/genre/{genre.id}/delete",
            data={"genreid": genre.id},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/catalog/genres"
