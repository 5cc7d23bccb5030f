"""Application configuration."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings for the menu import service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-5-mini"
    extraction_timeout_seconds: int = 120
    max_upload_size_mb: int = 50
    editor_session_ttl_minutes: int = 240  # 4 hours default
    database_url: Optional[str] = None
    log_level: str = "INFO"
    cors_allow_origins: List[str] = ["*"]

    @property
    def max_upload_size_bytes(self) -> int:
        """Return the upload size limit in bytes."""

        return self.max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
