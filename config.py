"""
Configuration settings for the valkompass session controller.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # AI Integration (Gemini)
    # ========================================
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Generative AI (Gemini) API key",
    )
    question_model: str = Field(
        default="gemini-2.0-flash",
        description="Model used to generate questionnaire statements",
    )
    analysis_model: str = Field(
        default="gemini-2.5-pro",
        description="Model used to analyze the finished questionnaire",
    )
    chat_model: str = Field(
        default="gemini-2.0-flash",
        description="Model used for the counter-argument chat",
    )
    question_temperature: float = Field(
        default=0.85,
        description="Sampling temperature for question generation",
    )
    chat_temperature: float = Field(
        default=0.7,
        description="Sampling temperature for the counter-argument chat",
    )
    chat_max_output_tokens: int = Field(
        default=150,
        description="Upper bound on chat reply length",
    )

    # ========================================
    # Question Acquisition
    # ========================================
    target_questions: int = Field(
        default=50,
        description="Nominal number of questions per session",
    )
    foreground_batch_size: int = Field(
        default=5,
        description="Questions fetched before the quiz opens",
    )
    background_batch_size: int = Field(
        default=15,
        description="Questions per background batch",
    )

    # ========================================
    # Answer Capture
    # ========================================
    grace_period_seconds: float = Field(
        default=5.5,
        description="Delay before a selected answer auto-commits",
    )
    phase_size: int = Field(
        default=10,
        description="Questions per progress phase ('Etapp')",
    )

    # ========================================
    # Retry Policy
    # ========================================
    retry_attempts: int = Field(
        default=3,
        description="Attempts per AI call on transient failures",
    )
    retry_base_delay_seconds: float = Field(
        default=1.0,
        description="First backoff delay; doubles after each failed attempt",
    )

    # ========================================
    # Session Persistence
    # ========================================
    session_dir: Path = Field(
        default=Path.home() / ".valkompass",
        description="Directory holding the session snapshot",
    )
    session_key: str = Field(
        default="valkompass_session_v3",
        description="Snapshot key; bump the version suffix on schema changes",
    )
    session_ttl_hours: int = Field(
        default=24,
        description="Snapshots older than this are discarded on load",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def has_ai_configured(self) -> bool:
        """Check if the Gemini API key is configured."""
        return bool(self.gemini_api_key)

    def get_acquisition_config(self) -> dict[str, int]:
        """Get question acquisition configuration as a dictionary."""
        return {
            "target_questions": self.target_questions,
            "foreground_batch_size": self.foreground_batch_size,
            "background_batch_size": self.background_batch_size,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
