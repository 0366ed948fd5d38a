"""Configuration management using Pydantic Settings."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="OSCLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # HTTP transport
    http_timeout: float = Field(30.0, gt=0, description="Request timeout in seconds")
    max_connections: int = Field(10, ge=1)
    max_keepalive_connections: int = Field(5, ge=0)
    user_agent: str = Field("osclient/0.1.0", description="User-Agent header sent with every request")

    # Retry configuration (connection failures and timeouts only)
    max_retries: int = Field(3, ge=1, le=10)
    retry_backoff_factor: float = Field(1.0, gt=0)
    retry_max_wait: float = Field(30.0, gt=0)

    # Search defaults
    max_url_length: Optional[int] = Field(None, ge=1, description="Reject GET URLs longer than this")
    preferred_items_per_page: Optional[int] = Field(None, ge=1)

    # Logging
    log_level: str = Field("INFO")
    log_format: str = Field("json", pattern="^(json|text)$")


# Instantiate global settings
settings = Settings()
