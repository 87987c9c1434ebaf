from fastapi import APIRouter, Depends
from typing import List

from database import Database, get_database
from schemas import CommentCreate, CommentCreated, CommentResponse
from utils.route_helpers import get_current_user_id, get_visible_post

router = APIRouter(prefix="/api/posts", tags=["comments"])


@router.post("/{post_id}/comment", response_model=CommentCreated)
async def create_comment(
    post_id: int,
    comment: CommentCreate,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
):
    await get_visible_post(db, post_id, current_user_id)
    result = await db.execute(
        "INSERT INTO comments (post_id, user_id, content) VALUES (?, ?, ?)",
        (post_id, current_user_id, comment.content),
    )
    return CommentCreated(commentId=result.lastrowid)


@router.get("/{post_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    post_id: int,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
):
    await get_visible_post(db, post_id, current_user_id)
    rows = await db.fetch_all(
        """
        SELECT c.id, c.post_id, c.user_id, c.content, c.created_at,
               u.username, u.name, u.profile_image
        FROM comments c
        LEFT JOIN users u ON c.user_id = u.id
        WHERE c.post_id = ?
        ORDER BY c.created_at ASC, c.id ASC
        """,
        (post_id,),
    )
    return [CommentResponse(**row) for row in rows]
