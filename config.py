"""
Configuration settings for the memorio adaptive mastery service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
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
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///data/memorio.db",
        description="SQLAlchemy connection string (SQLite or PostgreSQL)",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo emitted SQL (debugging only)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Knowledge Tracing Defaults (BKT)
    # ========================================
    bkt_initial_probability_known: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Prior P(L0) for a newly created mastery record",
    )
    bkt_probability_learned: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="P(T): chance of moving from unknown to known per attempt",
    )
    bkt_probability_slip: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="P(S): chance of an incorrect answer despite knowing the skill",
    )

    # ========================================
    # Mastery Tracking
    # ========================================
    mastery_max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts before a concurrency conflict is surfaced to the caller",
    )
    non_assessment_skill_type: str = Field(
        default="QUIZ",
        description="Skill type excluded from aggregate mastery stats (ungraded quizzes)",
    )

    def get_bkt_defaults(self) -> dict[str, float]:
        """Return the BKT priors applied to new mastery records."""
        return {
            "probability_known": self.bkt_initial_probability_known,
            "probability_learned": self.bkt_probability_learned,
            "probability_slip": self.bkt_probability_slip,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
