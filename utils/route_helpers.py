from fastapi import Depends, Request

from config import Settings
from database import Database, get_database
from errors import AuthenticationRequired, Forbidden, NotFound


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session_user(request: Request, db: Database) -> dict:
    """Re-read the session's user so deleted or blocked accounts lose access at once."""
    user_id = request.session.get("user_id")
    if not user_id:
        raise AuthenticationRequired()
    user = await db.fetch_one("SELECT id, is_admin, is_blocked FROM users WHERE id = ?", (user_id,))
    if not user or user["is_blocked"]:
        request.session.clear()
        raise AuthenticationRequired()
    return user


async def get_current_user_id(request: Request, db: Database = Depends(get_database)) -> int:
    """Guard: the request must carry a session for an active user."""
    user = await get_session_user(request, db)
    return user["id"]


async def require_admin(request: Request, db: Database = Depends(get_database)) -> int:
    """Guard: the session must belong to an active admin."""
    if not request.session.get("user_id"):
        raise Forbidden("Admin access required")
    user = await get_session_user(request, db)
    if not user["is_admin"]:
        raise Forbidden("Admin access required")
    return user["id"]


async def get_visible_post(db: Database, post_id: int, user_id: int) -> dict:
    """Get a post the user is allowed to see, 404 otherwise."""
    post = await db.fetch_one("SELECT id, user_id, privacy FROM posts WHERE id = ?", (post_id,))
    if not post or (post["privacy"] != "public" and post["user_id"] != user_id):
        raise NotFound("Post not found")
    return post
