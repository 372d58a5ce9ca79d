"""Gateway configuration loaded from environment variables.

All settings use the ``FLEXIDESK_`` prefix, e.g. ``FLEXIDESK_API_BASE_URL``.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the gateway and its upstream client."""

    model_config = SettingsConfigDict(env_prefix="FLEXIDESK_", extra="ignore")

    app_name: str = Field(default="FlexiDesk Gateway", description="Application name")
    environment: str = Field(default="dev", description="Deployment environment")

    # Upstream REST API
    api_base_url: str = Field(
        default="http://localhost:4000/api",
        description="Base URL of the FlexiDesk REST API",
    )
    request_timeout: float = Field(default=10.0, description="Upstream timeout in seconds")

    # Comma-separated list, e.g. "http://localhost:3000,https://app.flexidesk.ph"
    cors_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000")
    log_level: str = Field(default="INFO", description="Root logging level")
    currency: str = Field(default="PHP", description="Display currency code")

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def cors_origin_list(self) -> list[str]:
        """CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance."""
    return Settings()
