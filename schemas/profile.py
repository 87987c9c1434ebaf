from pydantic import BaseModel, validator
from typing import Optional
from datetime import datetime

MIN_PASSWORD_LENGTH = 6


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str

    @validator('new_password')
    def validate_new_password(cls, v):
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')
        return v


class UserSummary(BaseModel):
    id: int
    username: str
    name: str
    profile_image: Optional[str] = None
    bio: Optional[str] = None


class ProfileResponse(UserSummary):
    created_at: datetime
    post_count: int
