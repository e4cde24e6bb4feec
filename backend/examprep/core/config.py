"""Application settings and configuration."""

from typing import Literal

from pydantic import Field, field_validator  # type: ignore
from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENV: Literal["dev", "staging", "prod", "test"] = Field(default="dev")
    PROJECT_NAME: str = Field(default="Exam Prep IRT Engine")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    # IRT calibration
    IRT_MIN_CALIBRATION_SAMPLE: int = Field(default=30, ge=1)
    IRT_CALIBRATION_CONCURRENCY: int = Field(default=4, ge=1)  # items calibrated at once

    # IRT ability progression
    IRT_PROGRESSION_STEP: int = Field(default=5, ge=1)  # re-estimate every N attempts

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Upper-case the level name and reject unknown levels."""
        level = value.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL: {value}")
        return level


# Global settings instance
settings = Settings()
