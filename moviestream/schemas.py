from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from moviestream.models import MAX_PASSWORD_BYTES


def _fits_bcrypt(v: str) -> str:
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


# --- Auth ---
class SignupRequest(BaseModel):
    name: str = Field(min_length=3)
    email: str
    password: str = Field(min_length=6)

    @field_validator("name", "email")
    @classmethod
    def strip(cls, v):
        return v.strip()

    @field_validator("password")
    @classmethod
    def password_fits(cls, v):
        return _fits_bcrypt(v)


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str = Field(min_length=6)

    @field_validator("newPassword")
    @classmethod
    def password_fits(cls, v):
        return _fits_bcrypt(v)


class GoogleTokenRequest(BaseModel):
    idToken: str


# --- Catalog ---
class MovieCreate(BaseModel):
    tmdbId: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    videoUrl: Optional[str] = None
    posterPath: Optional[str] = None
    backdropPath: Optional[str] = None
    genre: List[str] = []
    type: List[str] = []
    rating: float = Field(default=0, ge=0, le=5)
    releaseDate: Optional[str] = None
    tags: List[str] = []

    @field_validator("genre", "type", "tags", mode="before")
    @classmethod
    def as_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("tmdbId", mode="before")
    @classmethod
    def tmdb_id_as_str(cls, v):
        return str(v) if isinstance(v, int) else v

    def missing_fields(self):
        required = ("title", "description", "videoUrl", "posterPath", "genre", "type", "tmdbId", "releaseDate")
        return [name for name in required if not getattr(self, name)]


# --- Engagement ---
class CommentCreate(BaseModel):
    comment: str = Field(min_length=1)
    rating: float = Field(ge=0, le=5)
    parentId: Optional[str] = None


class ReviewCreate(BaseModel):
    comment: str = Field(min_length=1)
    rating: float = Field(ge=0, le=5)


# --- Users ---
class UsernameUpdate(BaseModel):
    newUsername: str = ""


# --- Payments ---
class CreateSubscriptionRequest(BaseModel):
    priceId: str


class ConfirmSubscriptionRequest(BaseModel):
    subscriptionId: str
