from typing import Optional

from fastapi import APIRouter, Depends, Request

from moviestream import catalog, threads
from moviestream.auth import get_current_user, require_admin
from moviestream.errors import not_found
from moviestream.models import Movie, User
from moviestream.schemas import CommentCreate, MovieCreate, ReviewCreate
from moviestream.utils.serializers import serialize_movie

router = APIRouter(prefix="/api/movies", tags=["movies"])


@router.post("/admin/movies", status_code=201)
def add_movie(payload: MovieCreate, admin: User = Depends(require_admin)):
    movie = catalog.add_movie(payload)
    return {"success": True, "message": "Movie added successfully", "data": serialize_movie(movie)}


@router.get("")
def get_all_movies(
    request: Request,
    search: Optional[str] = None,
    category: Optional[str] = None,
    filterType: Optional[str] = None,
    type: Optional[str] = None,
    page: Optional[str] = None,
    loadAll: Optional[str] = None,
    sort: Optional[str] = None,
    user: User = Depends(get_current_user),
):
    query = catalog.MovieQuery.from_params(
        search=search, category=category, filterType=filterType, type=type,
        page=page, loadAll=loadAll, sort=sort,
    )
    return catalog.find_movies(query, page_size=request.app.state.settings.page_size)


@router.get("/by-type/{movie_type}")
def get_movies_by_type(movie_type: str, user: User = Depends(get_current_user)):
    movies = catalog.find_movies_by_type(movie_type)
    return {"success": True, "count": len(movies), "data": movies}


@router.get("/{tmdb_id}")
def get_movie(tmdb_id: str, user: User = Depends(get_current_user)):
    movie = Movie.find_by_tmdb_id(tmdb_id)
    if not movie:
        raise not_found("Movie not found", "MOVIE_NOT_FOUND")
    return {"success": True, "data": serialize_movie(movie)}


# --- Comments ---
@router.get("/{tmdb_id}/comments")
def get_movie_comments(tmdb_id: str):
    forest = threads.get_movie_comments(tmdb_id)
    return {"success": True, "count": len(forest), "data": forest}


@router.post("/{tmdb_id}/comments", status_code=201)
def add_movie_comment(tmdb_id: str, payload: CommentCreate, user: User = Depends(get_current_user)):
    return {"success": True, "data": threads.add_movie_comment(tmdb_id, user, payload)}


# --- Reviews ---
@router.get("/{tmdb_id}/reviews")
def get_movie_reviews(tmdb_id: str):
    reviews = threads.get_movie_reviews(tmdb_id)
    return {"success": True, "count": len(reviews), "data": reviews}


@router.post("/{tmdb_id}/reviews", status_code=201)
def add_movie_review(tmdb_id: str, payload: ReviewCreate, user: User = Depends(get_current_user)):
    return {"success": True, "data": threads.add_movie_review(tmdb_id, user, payload)}
