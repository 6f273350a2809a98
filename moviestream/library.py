"""Per-user favorites and watch history."""
from mongoengine import NotUniqueError

from moviestream.errors import bad_request, conflict, not_found
from moviestream.models import Movie, User, WatchEntry, utcnow
from moviestream.utils.serializers import serialize_movies_by_ids


def _require_movie(tmdb_id):
    movie = Movie.find_by_tmdb_id(tmdb_id)
    if not movie:
        raise not_found("Movie not found", "MOVIE_NOT_FOUND")
    return movie


def toggle_favorite_ids(favorites, tmdb_id):
    """Return (new_favorites, added)."""
    if tmdb_id in favorites:
        return [f for f in favorites if f != tmdb_id], False
    return list(favorites) + [tmdb_id], True


def refresh_watch_history(history, tmdb_id, watched_at=None):
    entries = [e for e in history if e.videoId != tmdb_id]
    entries.insert(0, WatchEntry(videoId=tmdb_id, watchedAt=watched_at or utcnow()))
    return entries


def toggle_favorite(user: User, tmdb_id):
    _require_movie(tmdb_id)
    user.favorites, added = toggle_favorite_ids(user.favorites or [], tmdb_id)
    user.save()
    return added


def favorite_movies(user: User):
    return serialize_movies_by_ids(user.favorites or [])


def add_to_watch_history(user: User, tmdb_id, watched_at=None):
    _require_movie(tmdb_id)
    user.watchHistory = refresh_watch_history(user.watchHistory or [], tmdb_id, watched_at)
    user.save()


def watch_history_movies(user: User):
    ordered = sorted(user.watchHistory or [], key=lambda e: e.watchedAt, reverse=True)
    return serialize_movies_by_ids([e.videoId for e in ordered])


def clear_watch_history(user: User):
    user.watchHistory = []
    user.save()


def rename(user: User, new_username):
    new_username = (new_username or "").strip()
    if not new_username:
        raise bad_request("New username cannot be empty")
    if new_username == user.username:
        raise bad_request("New username cannot be the same as the current one", "SAME_USERNAME")
    if User.objects(username=new_username, id__ne=user.id).first():
        raise conflict("Username already taken", "USERNAME_TAKEN")

    user.username = new_username
    try:
        user.save()
    except NotUniqueError:
        raise conflict("Username already taken", "USERNAME_TAKEN")
    return user
