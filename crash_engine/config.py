"""
Configuration management for the crash engine.

Uses pydantic-settings for type-safe environment variable handling.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every variable is prefixed with CRASH_ (e.g. CRASH_PORT=9000).
    """

    model_config = SettingsConfigDict(
        env_prefix="CRASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: AppEnvironment = Field(
        default=AppEnvironment.DEVELOPMENT,
        description="Application environment",
    )

    # Server configuration
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8080, ge=1024, le=65535, description="Server port")

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit log lines as JSON instead of the human-readable format",
    )
    log_buffer_size: int = Field(
        default=1000,
        ge=10,
        le=100000,
        description="Number of log records kept in memory for /diagnostics/logs",
    )

    # Failure triggers
    deadlock_hold_seconds: float = Field(
        default=2.0,
        gt=0,
        le=60,
        description="Seconds each deadlock route holds its first lock before requesting the second",
    )
    show_error_details: bool = Field(
        default=True,
        description="Include the exception message in rendered error responses",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.env == AppEnvironment.DEVELOPMENT

    def get_redacted_config(self) -> dict[str, str | int | float | bool]:
        """
        Get configuration dict safe for logging and API responses.
        """
        return {
            "env": self.env.value,
            "host": self.host,
            "port": self.port,
            "log_level": self.log_level,
            "deadlock_hold_seconds": self.deadlock_hold_seconds,
            "show_error_details": self.show_error_details,
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure single instance throughout application.
    """
    return Settings()


def get_settings_dep() -> Settings:
    """
    Dependency for FastAPI routes to get settings.
    Allows for easy dependency override in tests.
    """
    return get_settings()
