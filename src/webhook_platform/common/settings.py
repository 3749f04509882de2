"""Configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TOLERANCE_MS = 300_000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WEBHOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Verification
    secret: str | None = Field(
        default=None,
        description="Shared endpoint secret used to sign and verify payloads",
    )
    tolerance_ms: int = Field(
        default=DEFAULT_TOLERANCE_MS,
        ge=0,
        description="Maximum allowed drift (ms) between token timestamp and now",
    )

    # Receiver
    webhook_path: str = Field(
        default="/webhooks",
        description="Path of the inbound webhook endpoint",
    )
    host: str = Field(
        default="0.0.0.0",
        description="Host for the receiver HTTP server",
    )
    port: int = Field(
        default=8090,
        description="Port for the receiver HTTP server",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of console output",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
