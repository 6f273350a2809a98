from fastapi import APIRouter, Depends

from moviestream import auth
from moviestream.auth import get_current_user, get_settings
from moviestream.config import Settings
from moviestream.models import User
from moviestream.schemas import ChangePasswordRequest, GoogleTokenRequest, LoginRequest, SignupRequest
from moviestream.utils.serializers import serialize_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session(user: User, settings: Settings, message: str):
    return {
        "success": True,
        "token": auth.generate_token(user.id, settings),
        "user": serialize_user(user),
        "message": message,
    }


@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, settings: Settings = Depends(get_settings)):
    user = auth.signup(payload.name, payload.email, payload.password)
    return _session(user, settings, "User created successfully")


@router.post("/login")
def login(payload: LoginRequest, settings: Settings = Depends(get_settings)):
    user = auth.login(payload.email, payload.password)
    return _session(user, settings, "Logged in successfully")


@router.post("/logout")
def logout():
    # tokens are stateless; the client drops its copy
    return {"success": True, "message": "Logged out successfully"}


@router.post("/change-password")
def change_password(payload: ChangePasswordRequest, user: User = Depends(get_current_user)):
    auth.change_password(user, payload.currentPassword, payload.newPassword)
    return {"success": True, "message": "Password changed successfully"}


@router.post("/google/token")
@router.post("/google/verify")
def google_token(payload: GoogleTokenRequest, settings: Settings = Depends(get_settings)):
    claims = auth.verify_google_token(payload.idToken, settings)
    user = auth.google_login(claims)
    return _session(user, settings, "Google authentication successful")
