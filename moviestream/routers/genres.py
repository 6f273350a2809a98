from fastapi import APIRouter

from moviestream.catalog import unique_genres

router = APIRouter(prefix="/api/genres", tags=["genres"])


@router.get("")
def get_unique_genres():
    return {"success": True, "genres": unique_genres()}
