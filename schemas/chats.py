from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ChatCreate(BaseModel):
    user_id: int


class ChatCreated(BaseModel):
    chat_id: int
    created: bool


class ChatParticipant(BaseModel):
    id: int
    username: str
    name: str
    profile_image: Optional[str] = None


class ChatSummary(BaseModel):
    id: int
    created_at: datetime
    other_user: ChatParticipant
    last_message: Optional[str] = None
    last_message_type: Optional[str] = None
    last_message_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    id: int
    chat_id: int
    sender_id: int
    content: Optional[str] = None
    message_type: str  # 'text' or 'file'
    file_url: Optional[str] = None
    created_at: datetime
    username: Optional[str] = None
    name: Optional[str] = None
    profile_image: Optional[str] = None


class MessageCreated(BaseModel):
    success: bool = True
    message: MessageResponse
