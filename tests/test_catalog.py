from moviestream.catalog import MovieQuery, parse_page
from moviestream.models import Movie


def test_parse_page_falls_back_to_first_page():
    assert parse_page("3") == 3
    assert parse_page(None) == 1
    assert parse_page("abc") == 1
    assert parse_page("0") == 1
    assert parse_page("-2") == 1


def test_category_disables_pagination():
    assert MovieQuery.from_params().paginate
    assert not MovieQuery.from_params(category="Action").paginate
    assert not MovieQuery.from_params(loadAll="true").paginate
    assert MovieQuery.from_params(loadAll="false", type="series").paginate


def test_list_is_paginated_by_default(client, make_user, make_movie, auth_headers):
    user = make_user()
    for i in range(12):
        make_movie(str(i))

    resp = client.get("/api/movies", headers=auth_headers(user))
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert len(body["movies"]) == 10
    assert body["currentPage"] == 1
    assert body["totalPages"] == 2
    assert body["totalMovies"] == 12

    second = client.get("/api/movies", params={"page": "2"}, headers=auth_headers(user)).json()
    assert [m["id"] for m in second["movies"]] == ["10", "11"]
    assert second["currentPage"] == 2


def test_category_matches_genre_case_insensitively_without_pagination(client, make_user, make_movie, auth_headers):
    user = make_user()
    make_movie("1", genre=("action", "Thriller"))
    make_movie("2", genre=("ACTION",))
    make_movie("3", genre=("Action Comedy",))
    make_movie("4", genre=("Drama",))

    body = client.get("/api/movies", params={"category": "Action"}, headers=auth_headers(user)).json()
    assert sorted(m["id"] for m in body["movies"]) == ["1", "2"]
    assert "currentPage" not in body
    assert "totalPages" not in body
    assert body["totalMovies"] == 2
    assert "count" not in body
    for movie in body["movies"]:
        assert "action" in [c.lower() for c in movie["categories"]]


def test_category_with_filter_type_matches_type(client, make_user, make_movie, auth_headers):
    user = make_user()
    make_movie("1", type=("Series",))
    make_movie("2", type=("movie",))

    body = client.get(
        "/api/movies", params={"category": "series", "filterType": "type"}, headers=auth_headers(user)
    ).json()
    assert [m["id"] for m in body["movies"]] == ["1"]


def test_type_filter_keeps_pagination(client, make_user, make_movie, auth_headers):
    user = make_user()
    make_movie("1", type=("trailer", "upcoming"))
    make_movie("2", type=("movie",))

    body = client.get("/api/movies", params={"type": "UPCOMING"}, headers=auth_headers(user)).json()
    assert [m["id"] for m in body["movies"]] == ["1"]
    assert body["totalMovies"] == 1


def test_search_matches_title_or_description(client, make_user, make_movie, auth_headers):
    user = make_user()
    make_movie("1", title="The Dark Knight")
    make_movie("2", title="Heat", description="A DARK tale of two men")
    make_movie("3", title="Up", description="Balloons")

    body = client.get("/api/movies", params={"search": "dark"}, headers=auth_headers(user)).json()
    assert sorted(m["id"] for m in body["movies"]) == ["1", "2"]


def test_search_treats_input_as_text(client, make_user, make_movie, auth_headers):
    user = make_user()
    make_movie("1", title="What? (2019)")
    make_movie("2", title="Whatever")

    body = client.get("/api/movies", params={"search": "? ("}, headers=auth_headers(user)).json()
    assert [m["id"] for m in body["movies"]] == ["1"]


def test_load_all_returns_everything(client, make_user, make_movie, auth_headers):
    user = make_user()
    for i in range(15):
        make_movie(str(i))

    body = client.get("/api/movies", params={"loadAll": "true"}, headers=auth_headers(user)).json()
    assert len(body["movies"]) == 15
    assert "currentPage" not in body


def test_sort_recent_orders_by_release_date(client, make_user, make_movie, auth_headers):
    user = make_user()
    make_movie("old", release_date="1999-03-31")
    make_movie("new", release_date="2024-07-01")
    make_movie("mid", release_date="2010-07-16")

    body = client.get("/api/movies", params={"sort": "recent"}, headers=auth_headers(user)).json()
    assert [m["id"] for m in body["movies"]] == ["new", "mid", "old"]


def test_movie_mapping(client, make_user, make_movie, auth_headers):
    user = make_user()
    make_movie("603", title="The Matrix", genre=("Action", "Sci-Fi"), type=("movie",), tags=["classic"])

    body = client.get("/api/movies/603", headers=auth_headers(user)).json()
    assert body["success"] is True
    assert body["data"] == {
        "id": "603",
        "title": "The Matrix",
        "description": "Description of 603",
        "thumbnailUrl": "/posters/603.jpg",
        "backdropPath": "/backdrops/603.jpg",
        "videoUrl": "https://cdn.example.com/603.m3u8",
        "categories": ["Action", "Sci-Fi"],
        "type": ["movie"],
        "rating": 4.0,
        "releaseDate": "2020-01-01",
        "tags": ["classic"],
    }


def test_unknown_movie_is_404(client, make_user, auth_headers):
    user = make_user()
    resp = client.get("/api/movies/nope", headers=auth_headers(user))
    assert resp.status_code == 404
    assert resp.json()["error"] == "MOVIE_NOT_FOUND"


def test_listing_requires_token(client):
    resp = client.get("/api/movies")
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Access token is required", "error": "MISSING_TOKEN"}


def test_by_type(client, make_user, make_movie, auth_headers):
    user = make_user()
    make_movie("1", type=("series",))
    make_movie("2", type=("movie",))

    body = client.get("/api/movies/by-type/series", headers=auth_headers(user)).json()
    assert body["count"] == 1
    assert body["data"][0]["id"] == "1"


def test_unique_genres(client, make_movie):
    make_movie("1", genre=("Drama", "Action"))
    make_movie("2", genre=("Action", "Comedy"))

    body = client.get("/api/genres").json()
    assert body == {"success": True, "genres": ["Action", "Comedy", "Drama"]}


NEW_MOVIE = {
    "tmdbId": "27205",
    "title": "Inception",
    "description": "A thief enters dreams to steal secrets.",
    "videoUrl": "https://cdn.example.com/27205.m3u8",
    "posterPath": "/posters/27205.jpg",
    "genre": ["Action", "Sci-Fi"],
    "type": "movie",
    "rating": 4.5,
    "releaseDate": "2010-07-16",
}


def test_admin_adds_movie(client, make_user, auth_headers):
    admin = make_user("boss", role="admin")

    resp = client.post("/api/movies/admin/movies", json=NEW_MOVIE, headers=auth_headers(admin))
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["id"] == "27205"
    assert data["type"] == ["movie"]
    assert data["backdropPath"] == "/posters/27205.jpg"
    assert Movie.objects(tmdbId="27205").count() == 1


def test_customer_cannot_add_movie(client, make_user, auth_headers):
    user = make_user()
    resp = client.post("/api/movies/admin/movies", json=NEW_MOVIE, headers=auth_headers(user))
    assert resp.status_code == 403
    assert resp.json()["error"] == "ADMIN_ONLY"
    assert Movie.objects.count() == 0


def test_add_movie_missing_fields(client, make_user, auth_headers):
    admin = make_user("boss", role="admin")
    payload = dict(NEW_MOVIE, title="", genre=[])

    resp = client.post("/api/movies/admin/movies", json=payload, headers=auth_headers(admin))
    assert resp.status_code == 400
    assert resp.json()["error"] == "MISSING_FIELDS"


def test_duplicate_tmdb_id_is_conflict_and_keeps_existing(client, make_user, make_movie, auth_headers):
    admin = make_user("boss", role="admin")
    make_movie("27205", title="Original Title")

    resp = client.post("/api/movies/admin/movies", json=NEW_MOVIE, headers=auth_headers(admin))
    assert resp.status_code == 409
    assert resp.json()["error"] == "MOVIE_ALREADY_EXISTS"
    stored = Movie.objects.get(tmdbId="27205")
    assert stored.title == "Original Title"
    assert Movie.objects(tmdbId="27205").count() == 1
