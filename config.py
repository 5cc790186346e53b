"""
Configuration settings for the fluency trainer.

Uses Pydantic Settings for environment variable management with .env file
support. Every variable is prefixed with DRILL_ (e.g. DRILL_ROUND_DURATION_S=30).
"""

import sys
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from storage import DEFAULT_DB_PATH


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DRILL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    db_path: Path = Field(
        default=DEFAULT_DB_PATH,
        description="SQLite database holding item statistics, baselines and scope",
    )

    # ========================================
    # Practice
    # ========================================
    round_duration_s: float = Field(default=60.0, gt=0, description="Seconds per round")
    fluency_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Automaticity at or above which an item counts as fluent",
    )
    expansion_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Fluent share of enabled items before suggesting more",
    )

    # ========================================
    # Calibration
    # ========================================
    calibration_trials: int = Field(default=10, ge=1)
    calibration_warmup_trials: int = Field(default=2, ge=0)
    min_calibration_trials: int = Field(default=5, ge=1)

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(default="WARNING", description="Console log level")
    log_file: Path | None = Field(default=None, description="Optional DEBUG log file")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Route loguru output to stderr (and optionally a file)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format="<level>{level: <8}</level> | {message}",
    )
    if settings.log_file is not None:
        logger.add(
            settings.log_file,
            level="DEBUG",
            rotation="1 MB",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
        )
