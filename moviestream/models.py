from datetime import datetime, timezone

import bcrypt
from bson import ObjectId
from mongoengine import (
    Document, EmbeddedDocument, StringField, FloatField, ListField,
    DateTimeField, ReferenceField, EmbeddedDocumentField, ValidationError
)

ROLES = ("customer", "admin")
# bcrypt only hashes the first 72 bytes
MAX_PASSWORD_BYTES = 72


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_public_id():
    return str(ObjectId())


class TimestampedDocument(Document):
    meta = {'abstract': True}

    createdAt = DateTimeField()
    updatedAt = DateTimeField()

    def save(self, *args, **kwargs):
        now = utcnow()
        if not self.createdAt:
            self.createdAt = now
        self.updatedAt = now
        return super().save(*args, **kwargs)


class Movie(Document):
    meta = {
        'collection': 'movies',
        'db_alias': 'default',
        'strict': False,
        'indexes': [{'fields': ['tmdbId'], 'unique': True}],
    }
    tmdbId       = StringField(required=True)
    title        = StringField(required=True)
    description  = StringField(required=True)
    posterPath   = StringField(required=True)
    backdropPath = StringField(required=True)
    videoUrl     = StringField(required=True)
    genre        = ListField(StringField())
    type         = ListField(StringField())
    rating       = FloatField(required=True, min_value=0, max_value=5)
    releaseDate  = StringField(required=True)
    tags         = ListField(StringField())

    @classmethod
    def find_by_tmdb_id(cls, tmdb_id):
        return cls.objects(tmdbId=tmdb_id).first()


class WatchEntry(EmbeddedDocument):
    videoId   = StringField(required=True)
    watchedAt = DateTimeField(default=utcnow)


class Subscription(EmbeddedDocument):
    subscriptionId   = StringField()
    planId           = StringField()
    status           = StringField()
    currentPeriodEnd = DateTimeField()

    def as_tuple(self):
        return (self.subscriptionId, self.planId, self.status, self.currentPeriodEnd)


class User(TimestampedDocument):
    meta = {
        'collection': 'users',
        'db_alias': 'default',
        'strict': False,
        'indexes': [
            {'fields': ['username'], 'unique': True},
            {'fields': ['email'], 'unique': True},
            {'fields': ['googleId'], 'unique': True, 'sparse': True},
            'stripeCustomerId',
        ],
    }
    username         = StringField(required=True, min_length=3)
    email            = StringField(required=True)
    googleId         = StringField()
    password         = StringField()
    role             = StringField(choices=ROLES, default="customer")
    favorites        = ListField(StringField())
    watchHistory     = ListField(EmbeddedDocumentField(WatchEntry))
    stripeCustomerId = StringField()
    subscription     = EmbeddedDocumentField(Subscription)

    def clean(self):
        if self.username:
            self.username = self.username.strip()
        if self.email:
            self.email = self.email.strip().lower()
        if not self.password and not self.googleId:
            raise ValidationError("Password is required", field_name="password")

    def set_password(self, plain):
        self.password = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(10)).decode("utf-8")

    def match_password(self, plain):
        if not self.password or plain is None:
            return False
        if len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(plain.encode("utf-8"), self.password.encode("utf-8"))

    @property
    def is_admin(self):
        return self.role == "admin"


class EngagementDocument(TimestampedDocument):
    meta = {'abstract': True}

    publicId = StringField(primary_key=True, default=new_public_id)
    videoId  = StringField(required=True)
    comment  = StringField(required=True)
    rating   = FloatField(required=True, min_value=0, max_value=5)
    userId   = ReferenceField("User", required=True)


class Comment(EngagementDocument):
    meta = {
        'collection': 'comments',
        'db_alias': 'default',
        'strict': False,
        'indexes': ['videoId'],
    }
    parentId = StringField(null=True, default=None)


class Review(EngagementDocument):
    meta = {
        'collection': 'reviews',
        'db_alias': 'default',
        'strict': False,
        'indexes': ['videoId'],
    }
