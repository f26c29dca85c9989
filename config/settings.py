"""Application settings and configuration management."""
from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    MEDIA_DIR: str = Field(default="data/uploads")
    MEDIA_URL_PREFIX: str = "/uploads"
    APP_CONFIG_PATH: str = "app_config.json"

    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24

    QUESTION_SECONDS: int = 60
    RESUME_PROMPT_CHARS: int = 2000
    RESUME_EVAL_CHARS: int = 1000
    MAX_QUESTIONS: int = 7

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
