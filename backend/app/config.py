"""
Application settings for Taskline.

Values come from environment variables or a local .env file.
"""

import secrets
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Taskline"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./taskline.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # Sessions
    secret_key: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    session_cookie_name: str = "user_id_in_cookie"
    session_max_age: int = 60 * 60 * 24 * 7  # one week
    session_cookie_secure: bool = False

    # Logging
    log_level: str | None = None
    log_json: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
