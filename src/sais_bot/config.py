"""
Configuration management for SAIS Status Bot.

Loads and validates all required environment variables with clear error messages.
Uses Pydantic Settings for type safety and validation.
"""

import logging
from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sais_bot.models import Credentials


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All required variables must be set, or the application will fail fast
    with a clear error message indicating which variables are missing.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # UP SAIS portal
    sais_login_url: str = Field(
        default="https://sais.up.edu.ph/psp/ps/?cmd=login&languageCd=ENG",
        description="SAIS login page, fetched anonymously then posted to"
    )
    sais_success_marker: str = Field(
        default="Employee-facing registry content",
        description="Substring present in the page after a successful login"
    )
    sais_invalid_marker: str = Field(
        default="Your User ID and/or Password are invalid.",
        description="Substring present in the page when credentials are rejected"
    )
    sais_user_agent: str = Field(
        default="Is UP SAIS down?/1.0",
        description="User-Agent sent with the login attempt"
    )
    sais_request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for each request to SAIS"
    )

    # Probe account
    sais_userid: str = Field(
        ...,
        description="SAIS user ID of the probe account"
    )
    sais_password: str = Field(
        ...,
        description="SAIS password of the probe account"
    )
    sais_timezone_offset: int = Field(
        default=-480,
        description="Browser timezone offset in minutes sent with the login form"
    )
    sais_request_id: int = Field(
        default=0,
        ge=0,
        description="Numeric request_id sent with the login form"
    )

    # Telegram Bot API Configuration
    telegram_bot_token: str = Field(
        ...,
        description="Telegram Bot API token (from @BotFather)"
    )
    sais_allowed_chat_ids: List[int] = Field(
        default_factory=list,
        description="Only answer commands from these chats. Empty means any chat."
    )
    sais_emojis: Dict[str, str] = Field(
        default_factory=dict,
        description="Reply decorations keyed by tag (unicode text or custom emoji id)"
    )

    # Optional Configuration
    reply_utc_offset_hours: int = Field(
        default=8,
        description="UTC offset used for the reply timestamp"
    )
    cooldown_rate: int = Field(
        default=1,
        ge=1,
        description="Invocations allowed per chat within one cooldown window"
    )
    cooldown_seconds: float = Field(
        default=10.0,
        ge=0,
        description="Length of the cooldown window in seconds"
    )
    poll_timeout: int = Field(
        default=30,
        ge=0,
        description="Long polling timeout for getUpdates"
    )
    poll_error_delay: float = Field(
        default=5.0,
        ge=0,
        description="Seconds to wait after a failed getUpdates call"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

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
    def credentials(self) -> Credentials:
        """Login form fields for the probe account."""
        return Credentials(
            timezone_offset=self.sais_timezone_offset,
            userid=self.sais_userid,
            pwd=self.sais_password,
            request_id=self.sais_request_id,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Validated application settings

    Raises:
        ValidationError: If required environment variables are missing or invalid
    """
    return Settings()


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        settings: Optional settings instance, will be loaded if not provided

    Returns:
        logging.Logger: Configured logger instance
    """
    if settings is None:
        settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logging.getLogger("sais_bot")
