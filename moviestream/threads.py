"""Comments and reviews for a movie, with reply threading for comments."""
import logging
from datetime import datetime

from moviestream.errors import forbidden, not_found
from moviestream.models import Comment, Movie, Review
from moviestream.utils.serializers import serialize_engagement

logger = logging.getLogger(__name__)


def _created(node):
    return node.get("createdAt") or datetime.min


def assemble_thread(nodes):
    # oldest first; a node whose parent is not seen yet becomes a root
    by_id = {}
    roots = []
    for node in sorted(nodes, key=_created):
        node["replies"] = []
        parent = by_id.get(node.get("parentId")) if node.get("parentId") else None
        if parent is not None:
            parent["replies"].append(node)
        else:
            roots.append(node)
        by_id[node["id"]] = node
    return roots


def _require_movie(tmdb_id):
    movie = Movie.find_by_tmdb_id(tmdb_id)
    if not movie:
        raise not_found("Movie not found", "MOVIE_NOT_FOUND")
    return movie


def _comment_node(doc):
    node = serialize_engagement(doc, with_parent=True)
    node["createdAt"] = doc.createdAt
    return node


def get_movie_comments(tmdb_id):
    docs = Comment.objects(videoId=tmdb_id)
    forest = assemble_thread([_comment_node(d) for d in docs])
    _strip_sort_keys(forest)
    return forest


def _strip_sort_keys(forest):
    for node in forest:
        node.pop("createdAt", None)
        _strip_sort_keys(node["replies"])


def add_movie_comment(tmdb_id, user, payload):
    if payload.parentId and not user.is_admin:
        raise forbidden("Only admins can reply to comments", "FORBIDDEN_REPLY")

    _require_movie(tmdb_id)
    if payload.parentId and not Comment.objects(publicId=payload.parentId, videoId=tmdb_id).first():
        logger.warning("Reply %s on movie %s points at an unknown parent", payload.parentId, tmdb_id)

    doc = Comment(
        videoId=tmdb_id,
        userId=user,
        comment=payload.comment,
        rating=payload.rating,
        parentId=payload.parentId or None,
    )
    doc.save()
    return serialize_engagement(doc, with_parent=True)


def add_movie_review(tmdb_id, user, payload):
    _require_movie(tmdb_id)
    doc = Review(videoId=tmdb_id, userId=user, comment=payload.comment, rating=payload.rating)
    doc.save()
    return serialize_engagement(doc)


def get_movie_reviews(tmdb_id):
    _require_movie(tmdb_id)
    return [serialize_engagement(d) for d in Review.objects(videoId=tmdb_id).order_by("createdAt")]
