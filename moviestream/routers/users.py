from fastapi import APIRouter, Depends

from moviestream import library
from moviestream.auth import get_current_user
from moviestream.models import User
from moviestream.schemas import UsernameUpdate
from moviestream.utils.serializers import serialize_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return {"success": True, "data": serialize_user(user)}


@router.patch("/me/username")
def update_username(payload: UsernameUpdate, user: User = Depends(get_current_user)):
    library.rename(user, payload.newUsername)
    return {"success": True, "message": "Username updated successfully", "data": serialize_user(user)}


@router.get("/favorites")
def get_user_favorites(user: User = Depends(get_current_user)):
    return {"success": True, "data": library.favorite_movies(user)}


@router.post("/favorites/{movie_id}")
def toggle_favorite(movie_id: str, user: User = Depends(get_current_user)):
    added = library.toggle_favorite(user, movie_id)
    return {
        "success": True,
        "message": "Added to favorites" if added else "Removed from favorites",
        "data": {"favorites": list(user.favorites)},
    }


@router.get("/watch-history")
def get_watch_history(user: User = Depends(get_current_user)):
    return {"success": True, "data": library.watch_history_movies(user)}


@router.post("/watch-history/{movie_id}")
def add_to_watch_history(movie_id: str, user: User = Depends(get_current_user)):
    library.add_to_watch_history(user, movie_id)
    return {"success": True, "message": "Added to watch history"}


@router.delete("/watch-history")
def clear_watch_history(user: User = Depends(get_current_user)):
    library.clear_watch_history(user)
    return {"success": True, "message": "Watch history cleared"}
