from pydantic import BaseModel


class UserInfo(BaseModel):
    id: int
    username: str
    name: str
    profile_image: str | None
    is_admin: bool
