"""
Configuration and settings for the social feed backend.
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

    api_prefix: str = Field(default="/api")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    cors_origin: str = Field(default="*")
    log_level: str = Field(default="INFO")

    # Database (any SQLAlchemy URL, Postgres expected in production)
    database_url: Optional[str] = Field(default=None)

    # Bearer tokens
    jwt_secret: Optional[str] = Field(default=None)
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_minutes: int = Field(default=7 * 24 * 60, ge=1)

    # Argon2 cost parameters
    password_hash_time_cost: int = Field(default=3, ge=1)
    password_hash_memory_cost: int = Field(default=65536, ge=1024)

    # S3-compatible storage (MinIO in development)
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: str = Field(default="us-east-1")
    s3_bucket: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Uploads
    max_image_bytes: int = Field(default=5 * 1024 * 1024)
    image_cache_control: str = Field(default="public, max-age=31536000")

    # Pagination
    default_page_limit: int = Field(default=10, ge=1)
    max_page_limit: int = Field(default=100, ge=1)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    migrate_legacy_image_urls_on_startup: bool = Field(default=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
