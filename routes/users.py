from fastapi import APIRouter, Depends, Query
from typing import List

from config import Settings
from database import Database, get_database
from routes.posts import get_feed_rows
from routes.profile import get_profile_response
from schemas import PostResponse, ProfileResponse, UserSummary
from utils.route_helpers import get_app_settings, get_current_user_id

router = APIRouter(prefix="/api/users", tags=["users"])

USER_SUMMARY_COLUMNS = "id, username, name, profile_image, bio"


@router.get("", response_model=List[UserSummary])
async def list_users(current_user_id: int = Depends(get_current_user_id), db: Database = Depends(get_database)):
    """Everyone except the caller and blocked accounts"""
    rows = await db.fetch_all(
        f"SELECT {USER_SUMMARY_COLUMNS} FROM users WHERE id != ? AND is_blocked = 0 ORDER BY name COLLATE NOCASE ASC",
        (current_user_id,),
    )
    return [UserSummary(**row) for row in rows]


@router.get("/search", response_model=List[UserSummary])
async def search_users(
    q: str = Query(""),
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    q = q.strip()
    if not q:
        return []
    escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    rows = await db.fetch_all(
        f"""
        SELECT {USER_SUMMARY_COLUMNS} FROM users
        WHERE id != ? AND is_blocked = 0 AND (username LIKE ? ESCAPE '\\' OR name LIKE ? ESCAPE '\\')
        ORDER BY name COLLATE NOCASE ASC
        LIMIT ?
        """,
        (current_user_id, pattern, pattern, settings.search_limit),
    )
    return [UserSummary(**row) for row in rows]


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_user_profile(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
):
    return await get_profile_response(db, user_id)


@router.get("/{user_id}/posts", response_model=List[PostResponse])
async def list_user_posts(
    user_id: int,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    """Posts by one author; other people's private posts stay hidden."""
    rows = await get_feed_rows(db, current_user_id, settings.feed_limit, author_id=user_id)
    return [PostResponse(**row) for row in rows]
