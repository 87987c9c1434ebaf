from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import RedirectResponse
from loguru import logger
from typing import List, Optional

from config import Settings
from database import Database, get_database
from errors import Forbidden, NotFound, PayloadTooLarge, ValidationFailed
from file_utils import delete_upload, has_file, save_upload, stored_path_to_file
from schemas import LikeResponse, PostResponse, SuccessResponse
from schemas.posts import PRIVACY_CHOICES
from utils.route_helpers import get_app_settings, get_current_user_id, get_visible_post

router = APIRouter(tags=["posts"])

# Counts and the viewer's like flag come from correlated subqueries so the
# whole page is one round trip.
FEED_QUERY = """
    SELECT p.id, p.user_id, p.content, p.image, p.video, p.audio, p.privacy, p.created_at,
           u.username, u.name, u.profile_image,
           (SELECT COUNT(*) FROM likes WHERE post_id = p.id) AS like_count,
           (SELECT COUNT(*) FROM comments WHERE post_id = p.id) AS comment_count,
           EXISTS(SELECT 1 FROM likes WHERE post_id = p.id AND user_id = ?) AS user_liked
    FROM posts p
    JOIN users u ON p.user_id = u.id
    WHERE (p.privacy = 'public' OR p.user_id = ?) {author_filter}
    ORDER BY p.created_at DESC, p.id DESC
    LIMIT ?
"""


async def get_feed_rows(db: Database, viewer_id: int, limit: int, author_id: Optional[int] = None) -> List[dict]:
    if author_id is None:
        sql = FEED_QUERY.format(author_filter="")
        params = (viewer_id, viewer_id, limit)
    else:
        sql = FEED_QUERY.format(author_filter="AND p.user_id = ?")
        params = (viewer_id, viewer_id, author_id, limit)
    return await db.fetch_all(sql, params)


async def delete_post_with_content(db: Database, post_id: int, upload_dir: str):
    """Remove a post with its likes and comments, then its media files."""

    def remove(conn):
        row = conn.execute("SELECT image, video, audio FROM posts WHERE id = ?", (post_id,)).fetchone()
        if not row:
            return None
        conn.execute("DELETE FROM likes WHERE post_id = ?", (post_id,))
        conn.execute("DELETE FROM comments WHERE post_id = ?", (post_id,))
        conn.execute("DELETE FROM posts WHERE id = ?", (post_id,))
        return dict(row)

    media = await db.transaction(remove)
    if media is None:
        raise NotFound("Post not found")
    for stored in media.values():
        if stored:
            delete_upload(stored_path_to_file(stored, upload_dir))


@router.get("/api/posts", response_model=List[PostResponse])
async def list_posts(
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    rows = await get_feed_rows(db, current_user_id, settings.feed_limit)
    return [PostResponse(**row) for row in rows]


@router.post("/create-post", status_code=303)
async def create_post(
    content: str = Form(""),
    privacy: str = Form("public"),
    image: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    audio: Optional[UploadFile] = File(None),
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    content = content.strip()
    privacy = privacy.strip() or "public"
    if not content and not any(has_file(f) for f in (image, video, audio)):
        raise ValidationFailed("Please enter content or choose a file")
    if privacy not in PRIVACY_CHOICES:
        raise ValidationFailed(f"Privacy must be one of: {list(PRIVACY_CHOICES)}")

    stored = {}
    try:
        for field, upload in (("image", image), ("video", video), ("audio", audio)):
            stored[field] = await save_upload(upload, settings.upload_dir, settings.max_upload_size)
    except PayloadTooLarge:
        # Drop the files already written for this post
        for path in filter(None, stored.values()):
            delete_upload(stored_path_to_file(path, settings.upload_dir))
        raise

    result = await db.execute(
        "INSERT INTO posts (user_id, content, image, video, audio, privacy) VALUES (?, ?, ?, ?, ?, ?)",
        (current_user_id, content or None, stored["image"], stored["video"], stored["audio"], privacy),
    )
    logger.info("User {} created post {}", current_user_id, result.lastrowid)
    return RedirectResponse("/", status_code=303)


@router.post("/api/posts/{post_id}/like", response_model=LikeResponse)
async def toggle_like(
    post_id: int,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
):
    """Like the post, or unlike it when the caller already does."""
    await get_visible_post(db, post_id, current_user_id)

    def toggle(conn):
        row = conn.execute(
            "SELECT id FROM likes WHERE post_id = ? AND user_id = ?", (post_id, current_user_id)
        ).fetchone()
        if row:
            conn.execute("DELETE FROM likes WHERE id = ?", (row["id"],))
            return False
        conn.execute("INSERT INTO likes (post_id, user_id) VALUES (?, ?)", (post_id, current_user_id))
        return True

    liked = await db.transaction(toggle)
    return LikeResponse(liked=liked)


@router.delete("/api/posts/{post_id}", response_model=SuccessResponse)
async def delete_post(
    post_id: int,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    post = await db.fetch_one("SELECT user_id FROM posts WHERE id = ?", (post_id,))
    if not post:
        raise NotFound("Post not found")
    if post["user_id"] != current_user_id:
        is_admin = await db.fetch_value("SELECT is_admin FROM users WHERE id = ?", (current_user_id,))
        if not is_admin:
            raise Forbidden("You can only delete your own posts")
    await delete_post_with_content(db, post_id, settings.upload_dir)
    return SuccessResponse(message="Post deleted")
