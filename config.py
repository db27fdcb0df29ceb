"""
Application configuration using Pydantic Settings.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "VidShare API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "vidshare"
    SEARCH_INDEX_NAME: str = "default"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Tokens
    ACCESS_TOKEN_SECRET: str = "change_me_access_secret"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_SECRET: str = "change_me_refresh_secret"
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    JWT_ALGORITHM: str = "HS256"
    COOKIE_SECURE: bool = True

    # Uploads
    UPLOAD_DIR: str = "uploads"
    TEMP_DIR: str = "uploads/temp"
    STATIC_URL_PREFIX: str = "/static"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
