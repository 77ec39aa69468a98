"""Application settings and configuration management."""
from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    APP_CONFIG_PATH: str = Field(default="app_config.json")

    PERSONA_DEFAULT: str = "swe-interviewer-standard"
    TOTAL_QUESTION_BUDGET: int = Field(default=3, ge=1)
    BATCH_SIZE: int = Field(default=3, ge=1)
    START_MODE: Literal["batch", "single"] = "batch"
    DEFAULT_DURATION_SECONDS: int = Field(default=1800, ge=60)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
