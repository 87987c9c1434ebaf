from pydantic import BaseModel, validator
from typing import Optional
from datetime import datetime

REPORT_TARGET_TYPES = ('post', 'comment', 'user', 'message')
REPORT_STATUSES = ('pending', 'reviewed', 'dismissed')


class AdminStats(BaseModel):
    total_users: int
    total_posts: int
    total_comments: int
    total_likes: int


class AdminUserRow(BaseModel):
    id: int
    username: str
    name: str
    profile_image: Optional[str] = None
    is_admin: bool
    is_blocked: bool
    created_at: datetime
    post_count: int


class BlockRequest(BaseModel):
    blocked: bool = True


class ReportCreate(BaseModel):
    target_type: str
    target_id: int
    reason: str

    @validator('target_type')
    def validate_target_type(cls, v):
        if v not in REPORT_TARGET_TYPES:
            raise ValueError(f'Target type must be one of: {list(REPORT_TARGET_TYPES)}')
        return v

    @validator('reason')
    def validate_reason(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Reason cannot be empty')
        if len(v) > 500:
            raise ValueError('Reason must be at most 500 characters long')
        return v


class ReportCreated(BaseModel):
    success: bool = True
    reportId: int


class ReportResponse(BaseModel):
    id: int
    reporter_id: int
    reporter_username: Optional[str] = None
    target_type: str
    target_id: int
    reason: str
    status: str
    created_at: datetime


class ReportStatusUpdate(BaseModel):
    status: str

    @validator('status')
    def validate_status(cls, v):
        if v not in REPORT_STATUSES:
            raise ValueError(f'Status must be one of: {list(REPORT_STATUSES)}')
        return v


class AdminMessageCreate(BaseModel):
    title: str
    content: str

    @validator('title', 'content')
    def validate_not_empty(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Field cannot be empty')
        return v


class AdminMessageResponse(BaseModel):
    id: int
    admin_id: int
    admin_username: Optional[str] = None
    title: str
    content: str
    created_at: datetime
