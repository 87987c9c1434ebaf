from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import RedirectResponse
from loguru import logger
from typing import Optional

from auth import (
    DEFAULT_PROFILE_IMAGE,
    hash_password_async,
    login_user,
    logout_user,
    normalize_username,
    verify_password_async,
)
from config import Settings
from database import Database, get_database
from errors import LOGIN_PAGE, DuplicateUsername, IntegrityViolation, InvalidCredentials, NotFound, ValidationFailed
from file_utils import delete_upload, save_upload, stored_path_to_file
from schemas import SuccessResponse, UserInfo
from utils.route_helpers import get_app_settings, get_current_user_id

router = APIRouter(tags=["authentication"])


async def get_active_user_by_username(db: Database, username: str):
    """Blocked accounts are invisible to login."""
    return await db.fetch_one(
        "SELECT id, username, password, name, profile_image, is_admin FROM users "
        "WHERE username = ? AND is_blocked = 0",
        (username,),
    )


@router.post("/register", status_code=303)
async def register(
    username: str = Form(""),
    password: str = Form(""),
    name: str = Form(""),
    profileImage: Optional[UploadFile] = File(None),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    username = normalize_username(username)
    name = name.strip()
    if not username or not password or not name:
        raise ValidationFailed("Please fill in all fields")

    if await db.fetch_one("SELECT id FROM users WHERE username = ?", (username,)):
        raise DuplicateUsername()

    hashed = await hash_password_async(password, settings.bcrypt_rounds)
    profile_image = await save_upload(profileImage, settings.upload_dir, settings.max_upload_size)
    try:
        await db.execute(
            "INSERT INTO users (username, password, name, profile_image) VALUES (?, ?, ?, ?)",
            (username, hashed, name, profile_image or DEFAULT_PROFILE_IMAGE),
        )
    except IntegrityViolation:
        # Lost the race against a concurrent registration of the same name
        if profile_image:
            delete_upload(stored_path_to_file(profile_image, settings.upload_dir))
        raise DuplicateUsername()
    logger.info("Registered user {}", username)
    return RedirectResponse(LOGIN_PAGE, status_code=303)


@router.post("/login", status_code=303)
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    db: Database = Depends(get_database),
):
    username = normalize_username(username)
    if not username or not password:
        raise ValidationFailed("Please enter username and password")

    user = await get_active_user_by_username(db, username)
    if not user or not await verify_password_async(password, user["password"]):
        logger.warning("Failed login for {}", username)
        raise InvalidCredentials()

    login_user(request, user)
    logger.info("User {} logged in", username)
    return RedirectResponse("/", status_code=303)


@router.get("/logout")
def logout(request: Request):
    logout_user(request)
    return RedirectResponse(LOGIN_PAGE, status_code=303)


@router.post("/forgot-password", response_model=SuccessResponse)
async def forgot_password(username: str = Form(""), db: Database = Depends(get_database)):
    """Password reset is not delivered anywhere yet; the request is only logged."""
    username = normalize_username(username)
    if not username:
        raise ValidationFailed("Please enter your username")
    user = await db.fetch_one("SELECT id FROM users WHERE username = ?", (username,))
    logger.info("Password reset requested for {} (known={})", username, bool(user))
    return SuccessResponse(message="If the account exists, reset instructions will be sent.")


@router.get("/api/user-info", response_model=UserInfo)
async def user_info(current_user_id: int = Depends(get_current_user_id), db: Database = Depends(get_database)):
    user = await db.fetch_one(
        "SELECT id, username, name, profile_image, is_admin FROM users WHERE id = ?",
        (current_user_id,),
    )
    if not user:
        raise NotFound("User not found")
    return UserInfo(**user)
