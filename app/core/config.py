"""Application configuration using Pydantic settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.logging_config import get_logger

logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Raised when the exporter cannot be configured from the environment."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Nature Remo API
    API_BASE_URL: str = "https://api.nature.global"
    OAUTH_TOKEN: str = ""
    OAUTH_TOKEN_FILE: str | None = None  # Takes precedence over OAUTH_TOKEN
    REQUEST_TIMEOUT_SECONDS: float = 10.0
    CACHE_INVALIDATION_SECONDS: int = Field(default=60, ge=0)

    # Application settings
    APP_NAME: str = "Nature Remo Exporter"
    APP_VERSION: str = "0.1.0"
    PORT: int = 9352
    METRICS_PATH: str = "/metrics"

    # Logging configuration
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # Set to True for JSON output (production)
    LOG_INCLUDE_CALLER: bool = True

    def resolve_oauth_token(self) -> str:
        """Return the bearer token, reading OAUTH_TOKEN_FILE when it is set.

        Raises:
            ConfigurationError: if the token file cannot be read or no token
                is configured at all.
        """
        if self.OAUTH_TOKEN_FILE:
            try:
                token = Path(self.OAUTH_TOKEN_FILE).read_text(encoding="utf-8").strip()
            except OSError as exc:
                raise ConfigurationError(
                    f"Unable to load oauth token file at: {self.OAUTH_TOKEN_FILE}. {exc}"
                ) from exc
        else:
            logger.info(
                "oauth_token_file_missing",
                message="No oauth token file found. Falling back to environment variable",
            )
            token = self.OAUTH_TOKEN.strip()

        if not token:
            raise ConfigurationError(
                "OAUTH_TOKEN not set. Be sure to set the Remo oauth token "
                "to a secret or environment variable"
            )
        return token


settings = Settings()
