import uuid
import os
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from errors import PayloadTooLarge

# Stored paths are relative to the public root, e.g. "uploads/<uuid>.png"
UPLOAD_URL_PREFIX = "uploads"
CHUNK_SIZE = 1024 * 1024


def ensure_upload_directory(upload_dir: str):
    Path(upload_dir).mkdir(parents=True, exist_ok=True)


def generate_uuid_filename(original_filename: str) -> str:
    """Generate a UUID filename keeping the original extension"""
    ext = Path(original_filename or "").suffix.lower()
    return f"{uuid.uuid4()}{ext}"


def has_file(upload: Optional[UploadFile]) -> bool:
    # Browsers send an empty part with no filename when nothing was chosen
    return upload is not None and bool(upload.filename)


async def save_upload(upload: Optional[UploadFile], upload_dir: str, max_size: int) -> Optional[str]:
    """Write an uploaded file to disk and return its stored relative path.

    Returns None when no file was sent. Raises PayloadTooLarge, leaving
    nothing on disk, when the file exceeds ``max_size`` bytes.
    """
    if not has_file(upload):
        return None
    ensure_upload_directory(upload_dir)
    uuid_filename = generate_uuid_filename(upload.filename)
    file_path = os.path.join(upload_dir, uuid_filename)
    written = 0
    try:
        with open(file_path, 'wb') as f:
            while chunk := await upload.read(CHUNK_SIZE):
                written += len(chunk)
                if written > max_size:
                    raise PayloadTooLarge(f"File exceeds {max_size // (1024 * 1024)}MB limit")
                f.write(chunk)
    except BaseException:
        delete_upload(file_path)
        raise
    return f"{UPLOAD_URL_PREFIX}/{uuid_filename}"


def delete_upload(file_path: str) -> bool:
    try:
        if os.path.exists(file_path):
            os.remove(file_path)
            return True
        return False
    except OSError:
        return False


def stored_path_to_file(stored_path: str, upload_dir: str) -> str:
    """Map a stored "uploads/<name>" path back to its location on disk"""
    return os.path.join(upload_dir, os.path.basename(stored_path))
