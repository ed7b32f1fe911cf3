"""
Configuration management for Canvas Relay.

Loads and validates all required environment variables with clear error messages.
Uses Pydantic Settings for type safety and validation.
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from canvas_relay.errors import ConfigError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All required variables must be set and non-blank, or the application
    will fail fast with a clear error message naming the missing variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Canvas LMS Configuration
    canvas_base: str = Field(
        ...,
        description="Base URL for the Canvas instance (e.g. https://canvas.example.edu)"
    )
    canvas_token: str = Field(
        ...,
        description="Canvas API access token"
    )
    canvas_course_id: str = Field(
        ...,
        description="Canvas course whose announcements are relayed"
    )

    # Discord Configuration
    discord_token: str = Field(
        ...,
        description="Discord bot token"
    )
    discord_channel_id: str = Field(
        ...,
        description="Discord channel ID announcements are posted to"
    )

    # Optional Configuration
    poll_interval: int = Field(
        default=600,
        gt=0,
        description="Seconds between poll cycles"
    )
    start_iso: Optional[datetime] = Field(
        default=None,
        description="Seed watermark used when no state file is available"
    )
    state_path: Optional[Path] = Field(
        default=None,
        description="JSON file the watermark is persisted to. Memory only if unset."
    )
    port: int = Field(
        default=10000,
        ge=0,
        le=65535,
        description="Health server port (0 disables the server)"
    )
    split_long_messages: bool = Field(
        default=False,
        description="Split long announcements over several messages instead of truncating"
    )
    request_timeout: float = Field(
        default=30,
        gt=0,
        description="Timeout in seconds for Canvas and Discord requests"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator(
        "canvas_base",
        "canvas_token",
        "canvas_course_id",
        "discord_token",
        "discord_channel_id",
    )
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject values that are empty or only whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("canvas_base")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base URL doesn't have trailing slash."""
        return v.rstrip("/")

    @field_validator("start_iso", "state_path", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat blank optional values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("start_iso")
    @classmethod
    def validate_start_iso(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive seed instants are taken as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return upper

    @property
    def announcements_url(self) -> str:
        """Full URL of the Canvas announcements endpoint."""
        return f"{self.canvas_base}/api/v1/announcements"

    @property
    def context_code(self) -> str:
        """Canvas context code for the configured course."""
        return f"course_{self.canvas_course_id}"


def load_settings(**overrides) -> Settings:
    """
    Build settings from the environment, translating validation failures.

    Args:
        **overrides: Explicit values that take precedence over the environment

    Returns:
        Settings: Validated application settings

    Raises:
        ConfigError: If required variables are missing, blank or invalid
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            name = ".".join(str(part) for part in error["loc"]).upper()
            if error["type"] == "missing":
                problems.append(f"Missing required env var: {name}")
            else:
                problems.append(f"Invalid env var {name}: {error['msg']}")
        raise ConfigError("\n".join(problems)) from e


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Validated application settings

    Raises:
        ConfigError: If required environment variables are missing or invalid
    """
    return load_settings()


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Logging level name

    Returns:
        logging.Logger: Configured logger instance
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logging.getLogger("canvas_relay")
