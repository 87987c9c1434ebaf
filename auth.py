from fastapi import Request
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEFAULT_PROFILE_IMAGE = "images/default-profile.png"


def hash_password(password: str, rounds: int | None = None) -> str:
    if rounds:
        return pwd_context.using(bcrypt__rounds=rounds).hash(password)
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


async def hash_password_async(password: str, rounds: int | None = None) -> str:
    return await run_in_threadpool(hash_password, password, rounds)


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    return await run_in_threadpool(verify_password, plain_password, hashed_password)


def normalize_username(username: str) -> str:
    """Usernames are unique case-insensitively, so they are stored folded."""
    return username.strip().lower()


def login_user(request: Request, user: dict):
    request.session["user_id"] = user["id"]
    request.session["username"] = user["username"]
    request.session["is_admin"] = bool(user["is_admin"])


def logout_user(request: Request):
    request.session.clear()
