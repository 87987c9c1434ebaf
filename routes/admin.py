import asyncio

from fastapi import APIRouter, Depends, Query
from loguru import logger
from typing import List, Optional

from config import Settings
from database import Database, get_database
from errors import NotFound, ValidationFailed
from routes.posts import delete_post_with_content
from schemas import (
    AdminMessageCreate,
    AdminMessageResponse,
    AdminStats,
    AdminUserRow,
    BlockRequest,
    ReportResponse,
    ReportStatusUpdate,
    SuccessResponse,
)
from schemas.admin import REPORT_STATUSES
from utils.route_helpers import get_app_settings, require_admin

router = APIRouter(prefix="/api/admin", tags=["admin"])


async def get_target_user(db: Database, user_id: int, current_user_id: int) -> dict:
    if user_id == current_user_id:
        raise ValidationFailed("Admins cannot run this action on their own account")
    user = await db.fetch_one("SELECT id, username FROM users WHERE id = ?", (user_id,))
    if not user:
        raise NotFound("User not found")
    return user


@router.get("/stats", response_model=AdminStats)
async def get_stats(current_user_id: int = Depends(require_admin), db: Database = Depends(get_database)):
    """Four independent counts, answered only once all of them are back."""
    users, posts, comments, likes = await asyncio.gather(
        db.fetch_value("SELECT COUNT(*) FROM users"),
        db.fetch_value("SELECT COUNT(*) FROM posts"),
        db.fetch_value("SELECT COUNT(*) FROM comments"),
        db.fetch_value("SELECT COUNT(*) FROM likes"),
    )
    return AdminStats(total_users=users, total_posts=posts, total_comments=comments, total_likes=likes)


@router.get("/users", response_model=List[AdminUserRow])
async def list_users(current_user_id: int = Depends(require_admin), db: Database = Depends(get_database)):
    rows = await db.fetch_all(
        """
        SELECT u.id, u.username, u.name, u.profile_image, u.is_admin, u.is_blocked, u.created_at,
               (SELECT COUNT(*) FROM posts WHERE user_id = u.id) AS post_count
        FROM users u
        ORDER BY u.created_at DESC, u.id DESC
        """
    )
    return [AdminUserRow(**row) for row in rows]


@router.post("/users/{user_id}/block", response_model=SuccessResponse)
async def block_user(
    user_id: int,
    body: Optional[BlockRequest] = None,
    current_user_id: int = Depends(require_admin),
    db: Database = Depends(get_database),
):
    """Block (default) or unblock a user. Blocked users can no longer log in."""
    blocked = body.blocked if body else True
    user = await get_target_user(db, user_id, current_user_id)
    await db.execute("UPDATE users SET is_blocked = ? WHERE id = ?", (1 if blocked else 0, user_id))
    logger.info("Admin {} {} user {}", current_user_id, "blocked" if blocked else "unblocked", user["username"])
    return SuccessResponse(message="User blocked" if blocked else "User unblocked")


@router.delete("/users/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    current_user_id: int = Depends(require_admin),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    """Hard delete. The user's content is kept unless cascade_user_delete is set."""
    user = await get_target_user(db, user_id, current_user_id)

    if settings.cascade_user_delete:
        def remove(conn):
            post_ids = [row[0] for row in conn.execute("SELECT id FROM posts WHERE user_id = ?", (user_id,))]
            for post_id in post_ids:
                conn.execute("DELETE FROM likes WHERE post_id = ?", (post_id,))
                conn.execute("DELETE FROM comments WHERE post_id = ?", (post_id,))
            conn.execute("DELETE FROM posts WHERE user_id = ?", (user_id,))
            conn.execute("DELETE FROM likes WHERE user_id = ?", (user_id,))
            conn.execute("DELETE FROM comments WHERE user_id = ?", (user_id,))
            conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

        await db.transaction(remove)
    else:
        await db.execute("DELETE FROM users WHERE id = ?", (user_id,))

    logger.info("Admin {} deleted user {} (cascade={})", current_user_id, user["username"], settings.cascade_user_delete)
    return SuccessResponse(message="User deleted")


@router.delete("/posts/{post_id}", response_model=SuccessResponse)
async def delete_post(
    post_id: int,
    current_user_id: int = Depends(require_admin),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    await delete_post_with_content(db, post_id, settings.upload_dir)
    logger.info("Admin {} deleted post {}", current_user_id, post_id)
    return SuccessResponse(message="Post deleted")


@router.get("/reports", response_model=List[ReportResponse])
async def list_reports(
    status: Optional[str] = Query(None),
    current_user_id: int = Depends(require_admin),
    db: Database = Depends(get_database),
):
    if status is not None and status not in REPORT_STATUSES:
        raise ValidationFailed(f"Status must be one of: {list(REPORT_STATUSES)}")
    sql = """
        SELECT r.id, r.reporter_id, u.username AS reporter_username, r.target_type, r.target_id,
               r.reason, r.status, r.created_at
        FROM reports r
        LEFT JOIN users u ON r.reporter_id = u.id
    """
    params = ()
    if status:
        sql += " WHERE r.status = ?"
        params = (status,)
    sql += " ORDER BY r.created_at DESC, r.id DESC"
    rows = await db.fetch_all(sql, params)
    return [ReportResponse(**row) for row in rows]


@router.post("/reports/{report_id}", response_model=SuccessResponse)
async def update_report_status(
    report_id: int,
    body: ReportStatusUpdate,
    current_user_id: int = Depends(require_admin),
    db: Database = Depends(get_database),
):
    result = await db.execute("UPDATE reports SET status = ? WHERE id = ?", (body.status, report_id))
    if result.rowcount == 0:
        raise NotFound("Report not found")
    logger.info("Admin {} marked report {} as {}", current_user_id, report_id, body.status)
    return SuccessResponse(message=f"Report {body.status}")


@router.post("/messages", response_model=AdminMessageResponse)
async def create_admin_message(
    body: AdminMessageCreate,
    current_user_id: int = Depends(require_admin),
    db: Database = Depends(get_database),
):
    result = await db.execute(
        "INSERT INTO admin_messages (admin_id, title, content) VALUES (?, ?, ?)",
        (current_user_id, body.title, body.content),
    )
    row = await db.fetch_one(
        """
        SELECT am.id, am.admin_id, u.username AS admin_username, am.title, am.content, am.created_at
        FROM admin_messages am
        LEFT JOIN users u ON am.admin_id = u.id
        WHERE am.id = ?
        """,
        (result.lastrowid,),
    )
    return AdminMessageResponse(**row)
