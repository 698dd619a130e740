"""
Configuration and settings for the portfolio backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="")

    # Relational store (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None, env="DATABASE_URL")

    # S3-compatible object storage
    storage_bucket: str = Field(default="portfolio-files", env="STORAGE_BUCKET")
    s3_endpoint: Optional[str] = Field(default=None, env="S3_ENDPOINT")
    s3_region: Optional[str] = Field(default=None, env="S3_REGION")
    aws_access_key_id: Optional[str] = Field(
        default=None, env="AWS_ACCESS_KEY_ID"
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None, env="AWS_SECRET_ACCESS_KEY"
    )
    # Public URLs are built as <base>/<key>; defaults to <endpoint>/<bucket>.
    storage_public_base_url: Optional[str] = Field(
        default=None, env="STORAGE_PUBLIC_BASE_URL"
    )

    # Sessions
    session_cookie_name: str = Field(
        default="portfolio_session", env="SESSION_COOKIE_NAME"
    )
    session_ttl_seconds: int = Field(
        default=7 * 24 * 3600, env="SESSION_TTL_SECONDS"
    )

    # Owner account seeded at startup (development convenience)
    owner_email: Optional[str] = Field(default=None, env="OWNER_EMAIL")
    owner_password: Optional[str] = Field(default=None, env="OWNER_PASSWORD")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, env="USE_IN_MEMORY_BACKENDS"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
