import logging
import re

from mongoengine import connect, disconnect

from moviestream.config import Settings

logger = logging.getLogger(__name__)


def mask_uri(uri: str) -> str:
    return re.sub(r":[^:@/]*@", ":****@", uri)


def connect_db(settings: Settings, **kwargs):
    from moviestream.models import Comment, Movie, Review, User

    logger.info("Connecting to MongoDB at %s", mask_uri(settings.mongo_uri))
    try:
        client = connect(
            db=settings.mongo_db,
            host=settings.mongo_uri,
            alias="default",
            **kwargs,
        )
        for document in (Movie, User, Comment, Review):
            document.ensure_indexes()
    except Exception as e:
        logger.error("MongoDB connection failed: %s", e)
        raise RuntimeError(f"❌ Failed to connect to MongoDB via MongoEngine: {e}") from e

    logger.info("✅ MongoEngine connection successful (db=%s)", settings.mongo_db)
    return client


def disconnect_db():
    disconnect(alias="default")
    logger.info("MongoDB disconnected")
