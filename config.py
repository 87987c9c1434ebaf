"""Application settings loaded from environment variables and ``.env``.

Example:
    >>> from config import get_settings
    >>> settings = get_settings()
    >>> settings.database_path
    'database.db'
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_SESSION_SECRET = "socialhub-dev-secret-change-me"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Runtime configuration.

    Every field can be overridden with a ``SOCIALHUB_`` prefixed environment
    variable, e.g. ``SOCIALHUB_DATABASE_PATH=/tmp/database.db``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOCIALHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Environment.DEVELOPMENT

    database_path: str = "database.db"

    session_secret: str = DEV_SESSION_SECRET
    session_max_age: int = Field(default=24 * 60 * 60, ge=60)

    upload_dir: str = "uploads"
    max_upload_size: int = Field(default=50 * 1024 * 1024, gt=0)
    views_dir: str = "views"

    feed_limit: int = Field(default=50, ge=1, le=500)
    search_limit: int = Field(default=20, ge=1, le=100)

    admin_username: str = "admin"
    admin_password: str = "admin123"
    admin_name: str = "Admin User"

    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    log_level: str = "INFO"
    json_logs: bool = False

    # Keep a deleted user's posts, comments and likes unless enabled.
    cascade_user_delete: bool = False

    @model_validator(mode="after")
    def check_production_secret(self) -> "Settings":
        if self.environment == Environment.PRODUCTION and self.session_secret == DEV_SESSION_SECRET:
            raise ValueError("SOCIALHUB_SESSION_SECRET must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def secure_cookies(self) -> bool:
        return self.is_production


@lru_cache
def get_settings() -> Settings:
    return Settings()
