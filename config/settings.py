"""Application settings and configuration management."""
from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    APP_CONFIG_PATH: str = Field(default="app_config.json")

    SESSION_BACKEND: str = "memory"
    REDIS_URL: str = ""
    SESSION_TTL_SECONDS: int = 86400
    SESSION_LOCK_TIMEOUT_S: float = 120.0

    MAX_FOLLOW_UPS: int = 2
    MAX_QUESTIONS: int = 30
    SOFT_LIMIT_MINUTES: float = 30.0
    HARD_LIMIT_MINUTES: float = 60.0
    CONTEXT_EXCHANGES: int = 3
    DEFAULT_TOPICS: List[str] = Field(
        default_factory=lambda: ["General Background", "Technical Fundamentals", "Problem Solving"]
    )

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
