from typing import Optional

from fastapi import FastAPI
from loguru import logger
from starlette.middleware.sessions import SessionMiddleware

from auth import hash_password
from config import Settings, get_settings
from database import Database, ensure_default_admin
from errors import register_error_handlers
from log_config import setup_logging
from routes.auth import router as auth_router
from routes.profile import router as profile_router
from routes.users import router as users_router
from routes.posts import router as posts_router
from routes.comments import router as comments_router
from routes.chats import router as chats_router
from routes.reports import router as reports_router
from routes.admin import router as admin_router
from routes.pages import router as pages_router, catch_all_router
from schemas import ERROR_RESPONSES


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.json_logs)

    app = FastAPI(title="socialhub", responses=ERROR_RESPONSES)
    app.state.settings = settings

    # Initialize database
    db = Database(settings.database_path)
    db.init()
    ensure_default_admin(
        db,
        settings.admin_username,
        lambda: hash_password(settings.admin_password, settings.bcrypt_rounds),
        settings.admin_name,
    )
    app.state.db = db

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie="socialhub_session",
        max_age=settings.session_max_age,
        https_only=settings.secure_cookies,
        same_site="lax",
    )
    register_error_handlers(app)

    # Include routers
    app.include_router(pages_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(users_router)
    app.include_router(posts_router)
    app.include_router(comments_router)
    app.include_router(chats_router)
    app.include_router(reports_router)
    app.include_router(admin_router)
    app.include_router(catch_all_router)

    logger.info("socialhub started (environment={}, database={})", settings.environment.value, settings.database_path)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=3000, reload=True)
