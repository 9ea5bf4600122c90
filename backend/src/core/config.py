"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Used as the slug of the data export filename
    app_name: str = Field(default="thalamus", validation_alias="APP_NAME")

    frontend_url: str = Field(
        default="http://localhost:5173",
        validation_alias="FRONTEND_URL",
    )

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    # Sessions are issued by the identity provider; we only look them up
    session_cookie_name: str = Field(
        default="session_token", validation_alias="SESSION_COOKIE_NAME",
    )

    # Admin API - disabled (503) when no key is configured
    admin_api_key: str | None = Field(default=None, validation_alias="ADMIN_API_KEY")

    # Share links
    share_link_ttl_days: int = Field(default=7, ge=1, validation_alias="SHARE_LINK_TTL_DAYS")

    # IP geolocation for the session list
    geolocation_url: str = Field(
        default="http://ip-api.com/json", validation_alias="GEOLOCATION_URL",
    )
    geolocation_timeout_seconds: float = Field(
        default=2.0, validation_alias="GEOLOCATION_TIMEOUT_SECONDS",
    )
    geolocation_cache_ttl_seconds: int = Field(
        default=60 * 60 * 24, validation_alias="GEOLOCATION_CACHE_TTL_SECONDS",
    )

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
