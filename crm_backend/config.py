"""
Configuration and settings for the CRM backend.
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

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Auth
    jwt_secret: str = Field(default="unsafe-dev-secret")
    token_ttl_seconds: int = Field(default=60 * 60 * 24, gt=0)

    # First admin account, created at startup when both are set
    seed_admin_email: Optional[str] = Field(default=None)
    seed_admin_password: Optional[str] = Field(default=None)
    seed_admin_name: str = Field(default="Administrator")

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
