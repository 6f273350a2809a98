import logging
import re
import time
from datetime import datetime, timedelta, timezone

import jwt
import requests
from bson import ObjectId
from fastapi import Depends, Request
from mongoengine import NotUniqueError
from mongoengine.queryset.visitor import Q

from moviestream.config import Settings
from moviestream.errors import ApiError, bad_request, conflict, forbidden, unauthorized
from moviestream.models import User

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_ISSUERS = {"accounts.google.com", "https://accounts.google.com"}


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# --- Tokens ---
def generate_token(user_id, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=settings.jwt_expires_in_days)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise unauthorized("Token has expired", "TOKEN_EXPIRED")
    except jwt.ImmatureSignatureError:
        raise unauthorized("Token not active yet", "TOKEN_NOT_ACTIVE")
    except jwt.InvalidTokenError:
        raise unauthorized("Invalid token", "INVALID_TOKEN")


def _bearer_token(request: Request) -> str:
    header = request.headers.get("authorization", "")
    if not header.startswith("Bearer "):
        return ""
    return header[7:].strip()


def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> User:
    token = _bearer_token(request)
    if not token:
        raise unauthorized("Access token is required", "MISSING_TOKEN")

    payload = decode_token(token, settings)
    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not ObjectId.is_valid(user_id):
        raise unauthorized("Invalid token", "INVALID_TOKEN")
    user = User.objects(id=user_id).first()
    if not user:
        raise unauthorized("User not found", "USER_NOT_FOUND")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise forbidden("Admin access required", "ADMIN_ONLY")
    return user


# --- Password accounts ---
def signup(name, email, password) -> User:
    email = email.strip().lower()
    existing = User.objects(Q(email=email) | Q(username=name)).first()
    if existing:
        if existing.email == email:
            raise conflict("email already exists", "EMAIL_EXISTS")
        raise conflict("username already taken", "USERNAME_TAKEN")

    user = User(username=name, email=email)
    user.set_password(password)
    try:
        user.save()
    except NotUniqueError:
        raise conflict("email or username already exists", "USER_ALREADY_EXISTS")
    logger.info("Created user %s", user.email)
    return user


def login(email, password) -> User:
    user = User.objects(email=email.strip().lower()).first()
    if not user or not user.match_password(password):
        raise unauthorized("Invalid credentials", "INVALID_CREDENTIALS")
    return user


def change_password(user: User, current_password, new_password):
    if not user.password:
        raise bad_request("This account signs in with Google and has no password", "NO_PASSWORD")
    if not user.match_password(current_password):
        raise unauthorized("Current password is incorrect", "INVALID_CREDENTIALS")
    user.set_password(new_password)
    user.save()


# --- Google ---
def verify_google_token(id_token: str, settings: Settings) -> dict:
    """Check a Google ID token against Google's tokeninfo endpoint."""
    if not settings.google_client_id:
        raise ApiError(500, "GOOGLE_AUTH_FAILED", "Google sign-in is not configured")
    try:
        resp = requests.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token}, timeout=10)
    except requests.RequestException as e:
        raise ApiError(502, "GOOGLE_AUTH_FAILED", "Could not reach Google", detail=str(e))

    if resp.status_code != 200:
        raise unauthorized("Invalid Google token", "INVALID_GOOGLE_TOKEN")

    claims = resp.json()
    if claims.get("aud") != settings.google_client_id or claims.get("iss") not in GOOGLE_ISSUERS:
        raise unauthorized("Invalid Google token", "INVALID_GOOGLE_TOKEN")
    if int(claims.get("exp", 0)) < int(time.time()):
        raise unauthorized("Google token has expired", "TOKEN_EXPIRED")
    if not claims.get("sub") or not claims.get("email"):
        raise unauthorized("Invalid Google token", "INVALID_GOOGLE_TOKEN")
    return claims


def _username_from(display_name, email):
    base = re.sub(r"\s+", "", display_name or "").lower() or email.split("@")[0].lower()
    if len(base) < 3:
        base = f"{base}user"
    if User.objects(username=base).first():
        base = f"{base}{str(int(time.time() * 1000))[-4:]}"
    return base


def google_login(claims: dict) -> User:
    user = User.objects(googleId=claims["sub"]).first()
    if user:
        return user

    email = claims["email"].strip().lower()
    if User.objects(email=email).first():
        raise conflict("Email already registered. Please log in with your password.", "EMAIL_EXISTS")

    user = User(
        googleId=claims["sub"],
        username=_username_from(claims.get("name"), email),
        email=email,
    )
    try:
        user.save()
    except NotUniqueError:
        raise conflict("email or username already exists", "USER_ALREADY_EXISTS")
    logger.info("Created Google user %s", user.email)
    return user
