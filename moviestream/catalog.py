"""Catalog queries: request filters to a movie queryset plus pagination."""
import math
from dataclasses import dataclass
from typing import Optional

from mongoengine import NotUniqueError
from mongoengine.queryset.visitor import Q

from moviestream.errors import bad_request, conflict
from moviestream.models import Movie
from moviestream.utils.serializers import serialize_movie

DEFAULT_PAGE_SIZE = 10
SORT_RECENT = "recent"


def parse_page(raw) -> int:
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return page if page > 0 else 1


@dataclass
class MovieQuery:
    search: Optional[str] = None
    category: Optional[str] = None
    filter_type: Optional[str] = None
    type: Optional[str] = None
    page: int = 1
    load_all: bool = False
    sort: Optional[str] = None

    @classmethod
    def from_params(cls, search=None, category=None, filterType=None, type=None,
                    page=None, loadAll=None, sort=None):
        return cls(
            search=search or None,
            category=category or None,
            filter_type=(filterType or "").lower() or None,
            type=type or None,
            page=parse_page(page),
            load_all=str(loadAll).lower() == "true",
            sort=(sort or "").lower() or None,
        )

    @property
    def paginate(self) -> bool:
        # a category filter always returns the full result set
        return not self.load_all and not self.category


def build_filter(query: MovieQuery) -> Q:
    criteria = Q()
    if query.search:
        criteria &= Q(title__icontains=query.search) | Q(description__icontains=query.search)
    if query.category:
        if query.filter_type == "type":
            criteria &= Q(type__iexact=query.category)
        else:
            criteria &= Q(genre__iexact=query.category)
    if query.type:
        criteria &= Q(type__iexact=query.type)
    return criteria


def find_movies(query: MovieQuery, page_size: int = DEFAULT_PAGE_SIZE) -> dict:
    qs = Movie.objects(build_filter(query))
    if query.sort == SORT_RECENT:
        qs = qs.order_by("-releaseDate")

    if not query.paginate:
        movies = [serialize_movie(m) for m in qs]
        return {"success": True, "movies": movies, "totalMovies": len(movies)}

    total = qs.count()
    page_qs = qs.skip((query.page - 1) * page_size).limit(page_size)
    return {
        "success": True,
        "movies": [serialize_movie(m) for m in page_qs],
        "currentPage": query.page,
        "totalPages": math.ceil(total / page_size),
        "totalMovies": total,
    }


def find_movies_by_type(movie_type: str) -> list:
    return [serialize_movie(m) for m in Movie.objects(type=movie_type)]


def unique_genres() -> list:
    return sorted(g for g in Movie.objects.distinct("genre") if g)


def add_movie(payload) -> Movie:
    missing = payload.missing_fields()
    if missing:
        raise bad_request(
            "Missing required fields. Title, description, videoUrl, posterPath, genre, "
            "type, releaseDate and tmdbId are required."
        )

    if Movie.find_by_tmdb_id(payload.tmdbId):
        raise conflict("A movie with this tmdbId already exists.", "MOVIE_ALREADY_EXISTS")

    movie = Movie(
        tmdbId=payload.tmdbId,
        title=payload.title,
        description=payload.description,
        videoUrl=payload.videoUrl,
        posterPath=payload.posterPath,
        backdropPath=payload.backdropPath or payload.posterPath,
        genre=payload.genre,
        type=payload.type,
        rating=payload.rating,
        releaseDate=payload.releaseDate,
        tags=payload.tags,
    )
    try:
        movie.save()
    except NotUniqueError:
        # lost a race with a concurrent insert of the same tmdbId
        raise conflict("A movie with this tmdbId already exists.", "MOVIE_ALREADY_EXISTS")
    return movie
