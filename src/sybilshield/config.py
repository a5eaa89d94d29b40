"""
Sybil Shield configuration management using pydantic-settings.
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Controller-group resolution
    min_group_size: int = Field(
        default=2,
        ge=1,
        description="Smallest component reported as a controller group (floored at 2)",
    )
    max_evidence_reasons: int = Field(
        default=8,
        ge=1,
        description="Evidence reasons reported per controller group",
    )

    # Review store
    review_db_path: Path = Field(
        default=Path("./data/reviews.db"),
        description="SQLite file holding per-actor review decisions",
    )

    # Safe fetch
    fetch_max_bytes: int = Field(
        default=1_000_000, description="Largest response body accepted, in bytes"
    )
    fetch_timeout_seconds: float = Field(
        default=10.0, description="Per-request timeout in seconds"
    )
    fetch_max_redirects: int = Field(
        default=3, description="Redirects followed before giving up"
    )
    fetch_allow_http: bool = Field(
        default=False, description="Allow plain http:// URLs"
    )
    fetch_user_agent: Optional[str] = Field(
        default="sybilshield/0.1 (+profile-review)",
        description="User-Agent header sent with fetches",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the logging level name."""
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Ensure critical settings are configured in production."""
        if self.environment == "production":
            if self.debug:
                raise ValueError("DEBUG must be False in production")
            if self.fetch_allow_http:
                raise ValueError("FETCH_ALLOW_HTTP must be False in production")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts and services embedding the resolver."""
    logging.basicConfig(
        level=getattr(logging, level or settings.log_level),
        format=LOG_FORMAT,
    )


# Global settings instance
settings = Settings()
