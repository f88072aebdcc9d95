"""Application settings and configuration.

This module defines all configuration options for the Forum Stage service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Forum Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Redis holds every forum record, index and counter
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    redis_max_connections: int = Field(default=50, ge=1, alias="REDIS_MAX_CONNECTIONS")
    redis_pool_timeout_seconds: float = Field(default=20.0, alias="REDIS_POOL_TIMEOUT_SECONDS")

    # Post creation policy
    track_ip_per_post: bool = Field(default=False, alias="TRACK_IP_PER_POST")

    # Reply notification delivery
    notification_locale: str = Field(default="en-GB", alias="NOTIFICATION_LOCALE")
    email_api_url: str | None = Field(default=None, alias="EMAIL_API_URL")
    email_api_key: str | None = Field(default=None, alias="EMAIL_API_KEY")
    email_http_timeout_seconds: float = Field(
        default=10.0,
        alias="EMAIL_HTTP_TIMEOUT_SECONDS",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def email_enabled(self) -> bool:
        """Return True when an HTTP email API is configured."""
        return bool(self.email_api_url)


settings = Settings()  # type: ignore[call-arg]
