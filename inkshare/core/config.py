"""
inkshare/core/config.py

Purpose: Application configuration

- Loads environment variables (and .env)
- Centralizes config values (bot token, allow-list, store backend, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    BOT_TOKEN and WHITELISTED have no defaults: a missing value aborts startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Telegram
    BOT_TOKEN: str = Field(
        ...,
        description="Telegram bot access token"
    )
    WHITELISTED: str = Field(
        ...,
        description="Whitespace-delimited Telegram usernames allowed to use the bot"
    )
    TELEGRAM_API_URL: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    TELEGRAM_WEBHOOK_URL: Optional[str] = Field(
        default=None,
        description="Public URL registered with Telegram on startup"
    )
    TELEGRAM_WEBHOOK_SECRET: Optional[str] = Field(
        default=None,
        description="Secret token Telegram echoes in X-Telegram-Bot-Api-Secret-Token"
    )

    # Credential store
    STORE_BACKEND: Literal["file", "mongo", "memory"] = Field(
        default="file",
        description="Where user records are persisted"
    )
    STORE_DIR: str = Field(
        default="db",
        description="Directory for the file-backed credential store"
    )
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="inkshare",
        description="MongoDB database name"
    )

    # reMarkable cloud
    REMARKABLE_AUTH_URL: str = Field(
        default="https://webapp-production-dot-remarkable-production.appspot.com",
        description="reMarkable authentication host"
    )
    REMARKABLE_SERVICE_MANAGER_URL: str = Field(
        default="https://service-manager-production-dot-remarkable-production.appspot.com",
        description="reMarkable service discovery host"
    )
    REMARKABLE_DEVICE_DESC: str = Field(
        default="desktop-linux",
        description="Device description sent when pairing"
    )
    REMARKABLE_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        description="Timeout for reMarkable requests; unset means no timeout"
    )

    # Rate Limiting
    RATE_LIMIT_WINDOW_SECONDS: float = Field(
        default=3.0,
        description="Length of the per-sender rate limit window"
    )
    RATE_LIMIT_MAX_MESSAGES: int = Field(
        default=1,
        description="Interactions admitted per sender per window"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )

    @field_validator("BOT_TOKEN")
    @classmethod
    def validate_bot_token(cls, v):
        """Reject a blank token; an empty env var is as bad as a missing one."""
        if not v.strip():
            raise ValueError("BOT_TOKEN must not be empty")
        return v.strip()

    @property
    def whitelisted_handles(self) -> List[str]:
        """Allow-listed usernames, without any leading '@'."""
        return [handle.lstrip("@") for handle in self.WHITELISTED.split()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.whitelisted_handles:
        errors.append("WHITELISTED must list at least one handle")

    if settings.STORE_BACKEND == "file" and not settings.STORE_DIR:
        errors.append("STORE_DIR is required for the file store")

    if settings.STORE_BACKEND == "mongo" and not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required for the mongo store")

    if settings.RATE_LIMIT_MAX_MESSAGES < 1:
        errors.append("RATE_LIMIT_MAX_MESSAGES must be at least 1")

    # Production-specific validations
    if settings.is_production:
        if settings.TELEGRAM_WEBHOOK_URL and not settings.TELEGRAM_WEBHOOK_SECRET:
            errors.append("TELEGRAM_WEBHOOK_SECRET is required in production")
        if settings.STORE_BACKEND == "memory":
            errors.append("STORE_BACKEND=memory is not allowed in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
