from pydantic import BaseModel, validator
from typing import Optional
from datetime import datetime

PRIVACY_CHOICES = ('public', 'private')


class PostResponse(BaseModel):
    id: int
    user_id: int
    content: Optional[str] = None
    image: Optional[str] = None
    video: Optional[str] = None
    audio: Optional[str] = None
    privacy: str
    created_at: datetime
    username: str
    name: str
    profile_image: Optional[str] = None
    like_count: int
    comment_count: int
    user_liked: bool


class LikeResponse(BaseModel):
    liked: bool


class CommentCreate(BaseModel):
    content: str

    @validator('content')
    def validate_content(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Content cannot be empty')
        if len(v) > 1000:
            raise ValueError('Content must be at most 1000 characters long')
        return v


class CommentCreated(BaseModel):
    success: bool = True
    commentId: int


class CommentResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    content: str
    created_at: datetime
    username: Optional[str] = None
    name: Optional[str] = None
    profile_image: Optional[str] = None
