"""Application settings and configuration management."""
from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/vendoriq.db")
    BLOB_DIR: str = Field(default="data/uploads")
    CATALOG_PATH: str | None = None
    LLM_CONFIG_PATH: str | None = None

    REVIEW_TIMEOUT_S: float = 30.0
    MAX_UPLOAD_BYTES: int = 15 * 1024 * 1024
    ALLOWED_EXTENSIONS: List[str] = Field(
        default_factory=lambda: [".pdf", ".jpg", ".jpeg", ".png", ".doc", ".docx", ".txt"]
    )

    AUDIT_SCORE_MIN: int = 1
    AUDIT_SCORE_MAX: int = 5
    MAX_DISAGREEMENTS: int = 2

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
