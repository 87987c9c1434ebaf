import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse, RedirectResponse

from config import Settings
from errors import LOGIN_PAGE, NotFound
from utils.route_helpers import get_app_settings

router = APIRouter(tags=["pages"])

ALLOWED_PAGES = {
    "register.html",
    "login.html",
    "forget-password.html",
    "reset-password.html",
    "index.html",
    "settings.html",
    "create-post.html",
    "profile.html",
    "user-list.html",
    "sheeko.html",
    "admin.html",
}


def page_response(page: str, views_dir: str) -> FileResponse:
    file_path = os.path.join(views_dir, page)
    if not os.path.isfile(file_path):
        raise NotFound("Page not found")
    return FileResponse(file_path, media_type="text/html")


@router.get("/health")
def health(settings: Settings = Depends(get_app_settings)):
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment.value,
    }


@router.get("/")
def home(request: Request, settings: Settings = Depends(get_app_settings)):
    if not request.session.get("user_id"):
        return RedirectResponse(LOGIN_PAGE, status_code=303)
    return page_response("index.html", settings.views_dir)


# Registered last: this catch-all would shadow every other single-segment GET
catch_all_router = APIRouter(tags=["pages"])


@catch_all_router.get("/{page}")
def serve_page(page: str, settings: Settings = Depends(get_app_settings)):
    if page not in ALLOWED_PAGES:
        raise NotFound("Page not found")
    return page_response(page, settings.views_dir)
