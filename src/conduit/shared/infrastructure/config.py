"""
Application configuration using Pydantic Settings.

Loads configuration from CONDUIT_* environment variables and .env file.
The engine and runner never read this module directly; the CLI passes the
values in at construction time.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="CONDUIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="conduit", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")

    # Process execution
    command_timeout: float = Field(
        default=900.0,
        gt=0,
        description="Default per-command timeout in seconds",
    )
    output_limit_bytes: int = Field(
        default=1_048_576,
        gt=0,
        description="Max captured bytes per stream before truncation",
    )
    kill_grace_period: float = Field(
        default=5.0,
        ge=0,
        description="Seconds between SIGTERM and SIGKILL on timeout",
    )

    # Credentials
    redaction_mask: str = Field(default="****", min_length=1, description="Replacement for secret values")
    preflight_credentials: bool = Field(
        default=False,
        description="Reject definitions whose declared credentials are not registered",
    )

    # Logging / Privacy
    log_redaction_enabled: bool = Field(default=True, description="Enable secret redaction in logs")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"


# Global settings instance
settings = Settings()
