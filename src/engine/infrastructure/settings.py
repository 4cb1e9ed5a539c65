"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TenancySettings(BaseSettings):
    """Tenant batch execution settings.

    Environment variables:
        TENANCY_LOCK_TIMEOUT_SECONDS: Bound on waiting for an in-flight batch
            to finish (default: unset, wait forever)
        TENANCY_LOCK_POLL_INTERVAL_SECONDS: How often an async batch re-checks
            the batch gate while waiting (default: 0.01)
        TENANCY_OPERATION_TIMEOUT_SECONDS: Per-tenant timeout for async
            operations (default: unset, no timeout)
        TENANCY_FAIL_FAST: Stop a batch at its first tenant failure
            (default: false)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    lock_timeout_seconds: float | None = Field(
        default=None,
        description="Bound on waiting for the batch gate",
    )
    lock_poll_interval_seconds: float = Field(
        default=0.01,
        description="Async batch gate poll interval",
        gt=0,
        le=5,
    )
    operation_timeout_seconds: float | None = Field(
        default=None,
        description="Per-tenant timeout for async operations",
    )
    fail_fast: bool = Field(
        default=False,
        description="Stop a batch at its first tenant failure",
    )

    @field_validator("lock_timeout_seconds", "operation_timeout_seconds")
    @classmethod
    def validate_positive_timeout(cls, value: float | None) -> float | None:
        """Timeouts are either unset or strictly positive."""
        if value is not None and value <= 0:
            raise ValueError(f"timeout must be > 0 when set, got {value}")
        return value


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Tenant Batch Engine", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Minimum log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize and validate the log level name."""
        normalized = value.upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return normalized


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return TenancySettings()
