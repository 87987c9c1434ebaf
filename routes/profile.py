from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from loguru import logger
from typing import Optional

from auth import hash_password_async, normalize_username, verify_password_async
from config import Settings
from database import Database, get_database
from errors import DuplicateUsername, IntegrityViolation, InvalidCredentials, NotFound, ValidationFailed
from file_utils import delete_upload, save_upload, stored_path_to_file
from schemas import PasswordUpdate, ProfileResponse, SuccessResponse
from utils.route_helpers import get_app_settings, get_current_user_id

router = APIRouter(prefix="/api/profile", tags=["profile"])


async def get_profile_response(db: Database, user_id: int) -> ProfileResponse:
    row = await db.fetch_one(
        """
        SELECT u.id, u.username, u.name, u.profile_image, u.bio, u.created_at,
               (SELECT COUNT(*) FROM posts WHERE user_id = u.id) AS post_count
        FROM users u
        WHERE u.id = ? AND u.is_blocked = 0
        """,
        (user_id,),
    )
    if not row:
        raise NotFound("User not found")
    return ProfileResponse(**row)


@router.get("", response_model=ProfileResponse)
async def get_own_profile(current_user_id: int = Depends(get_current_user_id), db: Database = Depends(get_database)):
    return await get_profile_response(db, current_user_id)


@router.post("", response_model=ProfileResponse)
async def update_profile(
    request: Request,
    username: str = Form(""),
    name: str = Form(""),
    bio: str = Form(""),
    profileImage: Optional[UploadFile] = File(None),
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    """Rewrite username, name and bio; replace the picture only when a new one is sent."""
    username = normalize_username(username)
    name = name.strip()
    if not username or not name:
        raise ValidationFailed("Username and name are required")

    current = await db.fetch_one("SELECT profile_image FROM users WHERE id = ?", (current_user_id,))
    if not current:
        raise NotFound("User not found")
    taken = await db.fetch_one(
        "SELECT id FROM users WHERE username = ? AND id != ?", (username, current_user_id)
    )
    if taken:
        raise DuplicateUsername()

    new_image = await save_upload(profileImage, settings.upload_dir, settings.max_upload_size)
    try:
        if new_image:
            await db.execute(
                "UPDATE users SET username = ?, name = ?, bio = ?, profile_image = ? WHERE id = ?",
                (username, name, bio.strip(), new_image, current_user_id),
            )
        else:
            await db.execute(
                "UPDATE users SET username = ?, name = ?, bio = ? WHERE id = ?",
                (username, name, bio.strip(), current_user_id),
            )
    except IntegrityViolation:
        if new_image:
            delete_upload(stored_path_to_file(new_image, settings.upload_dir))
        raise DuplicateUsername()

    old_image = current["profile_image"]
    if new_image and old_image and old_image.startswith("uploads/"):
        delete_upload(stored_path_to_file(old_image, settings.upload_dir))

    request.session["username"] = username
    return await get_profile_response(db, current_user_id)


@router.post("/password", response_model=SuccessResponse)
async def update_password(
    body: PasswordUpdate,
    current_user_id: int = Depends(get_current_user_id),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    row = await db.fetch_one("SELECT password FROM users WHERE id = ?", (current_user_id,))
    if not row:
        raise NotFound("User not found")
    if not await verify_password_async(body.current_password, row["password"]):
        raise InvalidCredentials("Current password is incorrect")

    hashed = await hash_password_async(body.new_password, settings.bcrypt_rounds)
    await db.execute("UPDATE users SET password = ? WHERE id = ?", (hashed, current_user_id))
    logger.info("User {} changed password", current_user_id)
    return SuccessResponse(message="Password updated")
