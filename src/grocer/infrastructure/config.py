"""Configuration management using pydantic-settings, logging via structlog.

All settings are prefixed with GROCER_ (e.g. GROCER_DATABASE_URL) and may
also come from a ``.env`` file in the working directory.
"""

from __future__ import annotations

import logging
import sys
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///data/grocer.db",
        description="SQLAlchemy database URL",
    )
    lock_timeout_ms: int = Field(
        default=5000,
        ge=0,
        description="How long a row lock may be waited for (PostgreSQL only, 0 = forever)",
    )

    # Store Configuration
    timezone: str = Field(
        default="Asia/Dubai",
        description="Store-local zone for discount windows and date-range queries",
    )

    # Query defaults
    history_limit: int = Field(default=50, ge=1, le=100)
    recent_limit: int = Field(default=20, ge=1, le=100)

    # Logging
    log_level: str = "INFO"
    log_format: str = Field(default="console", pattern="^(console|json)$")

    model_config = SettingsConfigDict(
        env_prefix="GROCER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone {value!r}") from exc
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def configure_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Configure structlog on top of stdlib logging (stderr)."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper(), logging.INFO),
        force=True,
    )
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
