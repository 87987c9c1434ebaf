from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import List, Optional

from config import Settings
from database import Database, get_database
from errors import Forbidden, NotFound, ValidationFailed
from file_utils import has_file, save_upload
from schemas import ChatCreate, ChatCreated, ChatParticipant, ChatSummary, MessageCreated, MessageResponse
from utils.route_helpers import get_app_settings, get_current_user_id

router = APIRouter(prefix="/api/chats", tags=["chats"])

MESSAGE_COLUMNS = """
    m.id, m.chat_id, m.sender_id, m.content, m.message_type, m.file_url, m.created_at,
    u.username, u.name, u.profile_image
"""


def chat_pair(user_a: int, user_b: int):
    """Chats are stored with the smaller id first."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


async def get_chat_for_participant(db: Database, chat_id: int, user_id: int) -> dict:
    chat = await db.fetch_one("SELECT id, user1_id, user2_id FROM chats WHERE id = ?", (chat_id,))
    if not chat:
        raise NotFound("Chat not found")
    if user_id not in (chat["user1_id"], chat["user2_id"]):
        raise Forbidden("You are not a participant of this chat")
    return chat


@router.post("", response_model=ChatCreated)
async def get_or_create_chat(
    body: ChatCreate,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
):
    if body.user_id == current_user_id:
        raise ValidationFailed("You cannot start a chat with yourself")
    other = await db.fetch_one("SELECT id FROM users WHERE id = ? AND is_blocked = 0", (body.user_id,))
    if not other:
        raise NotFound("User not found")

    user1_id, user2_id = chat_pair(current_user_id, body.user_id)

    def get_or_create(conn):
        # The UNIQUE pair makes a concurrent duplicate insert a no-op
        cursor = conn.execute(
            "INSERT OR IGNORE INTO chats (user1_id, user2_id) VALUES (?, ?)", (user1_id, user2_id)
        )
        created = cursor.rowcount == 1
        row = conn.execute(
            "SELECT id FROM chats WHERE user1_id = ? AND user2_id = ?", (user1_id, user2_id)
        ).fetchone()
        return row["id"], created

    chat_id, created = await db.transaction(get_or_create)
    return ChatCreated(chat_id=chat_id, created=created)


@router.get("", response_model=List[ChatSummary])
async def list_chats(current_user_id: int = Depends(get_current_user_id), db: Database = Depends(get_database)):
    rows = await db.fetch_all(
        """
        SELECT c.id, c.created_at,
               u.id AS other_id, u.username AS other_username, u.name AS other_name,
               u.profile_image AS other_profile_image,
               lm.content AS last_message, lm.message_type AS last_message_type,
               lm.created_at AS last_message_at
        FROM chats c
        JOIN users u ON u.id = CASE WHEN c.user1_id = ? THEN c.user2_id ELSE c.user1_id END
        LEFT JOIN messages lm ON lm.id = (
            SELECT id FROM messages WHERE chat_id = c.id ORDER BY created_at DESC, id DESC LIMIT 1
        )
        WHERE c.user1_id = ? OR c.user2_id = ?
        ORDER BY COALESCE(lm.created_at, c.created_at) DESC, c.id DESC
        """,
        (current_user_id, current_user_id, current_user_id),
    )
    return [
        ChatSummary(
            id=row["id"],
            created_at=row["created_at"],
            other_user=ChatParticipant(
                id=row["other_id"],
                username=row["other_username"],
                name=row["other_name"],
                profile_image=row["other_profile_image"],
            ),
            last_message=row["last_message"],
            last_message_type=row["last_message_type"],
            last_message_at=row["last_message_at"],
        )
        for row in rows
    ]


@router.get("/{chat_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    chat_id: int,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
):
    await get_chat_for_participant(db, chat_id, current_user_id)
    rows = await db.fetch_all(
        f"""
        SELECT {MESSAGE_COLUMNS}
        FROM messages m
        LEFT JOIN users u ON m.sender_id = u.id
        WHERE m.chat_id = ?
        ORDER BY m.created_at ASC, m.id ASC
        """,
        (chat_id,),
    )
    return [MessageResponse(**row) for row in rows]


@router.post("/{chat_id}/messages", response_model=MessageCreated)
async def send_message(
    chat_id: int,
    content: str = Form(""),
    file: Optional[UploadFile] = File(None),
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    # Membership is checked before anything touches disk or the table
    await get_chat_for_participant(db, chat_id, current_user_id)

    content = content.strip()
    if not content and not has_file(file):
        raise ValidationFailed("Message cannot be empty")

    file_url = await save_upload(file, settings.upload_dir, settings.max_upload_size)
    message_type = "file" if file_url else "text"
    result = await db.execute(
        "INSERT INTO messages (chat_id, sender_id, content, message_type, file_url) VALUES (?, ?, ?, ?, ?)",
        (chat_id, current_user_id, content or None, message_type, file_url),
    )
    row = await db.fetch_one(
        f"SELECT {MESSAGE_COLUMNS} FROM messages m LEFT JOIN users u ON m.sender_id = u.id WHERE m.id = ?",
        (result.lastrowid,),
    )
    return MessageCreated(message=MessageResponse(**row))
