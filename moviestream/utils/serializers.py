from mongoengine import DoesNotExist

from moviestream.models import Movie


def serialize_movie(doc):
    if doc is None:
        return None
    movie_type = doc.type
    if not isinstance(movie_type, list):
        movie_type = [movie_type] if movie_type else []
    return {
        "id": doc.tmdbId,
        "title": doc.title,
        "description": doc.description,
        "thumbnailUrl": doc.posterPath,
        "backdropPath": doc.backdropPath or doc.posterPath,
        "videoUrl": doc.videoUrl,
        "categories": doc.genre or [],
        "type": movie_type,
        "rating": doc.rating,
        "releaseDate": doc.releaseDate,
        "tags": doc.tags or [],
    }


def serialize_movies_by_ids(tmdb_ids):
    # keeps the order of tmdb_ids and skips ids whose movie is gone
    docs = {m.tmdbId: m for m in Movie.objects(tmdbId__in=list(tmdb_ids))}
    return [serialize_movie(docs[mid]) for mid in tmdb_ids if mid in docs]


def serialize_user(user):
    data = {
        "id": str(user.id),
        "name": user.username,
        "email": user.email,
        "role": user.role,
        "favorites": list(user.favorites or []),
    }
    if user.googleId:
        data["googleId"] = user.googleId
    return data


def serialize_subscription(sub):
    if sub is None:
        return None
    return {
        "subscriptionId": sub.subscriptionId,
        "planId": sub.planId,
        "status": sub.status,
        "currentPeriodEnd": sub.currentPeriodEnd.isoformat() if sub.currentPeriodEnd else None,
    }


def serialize_engagement(doc, with_parent=False):
    try:
        author = doc.userId
    except DoesNotExist:
        author = None
    out = {
        "id": doc.publicId,
        "videoId": doc.videoId,
        "comment": doc.comment,
        "rating": doc.rating,
        "user": {
            "id": str(author.id) if author else None,
            "name": author.username if author else None,
        },
        "timestamp": doc.createdAt.isoformat() if doc.createdAt else None,
    }
    if with_parent:
        out["parentId"] = doc.parentId
    return out
