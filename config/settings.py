"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Credential Configuration
    catalog_developer_token: str | None = Field(
        None, description="Static developer token for the catalog API"
    )
    catalog_token_url: str | None = Field(
        None, description="Token-issuing endpoint; takes precedence over the static token"
    )
    token_validity_seconds: int = Field(
        default=3600,
        description="Assumed lifetime of an issued token (the provider does not report one)",
    )

    # Catalog API Configuration
    catalog_api_base: str = Field(
        default="https://api.music.apple.com", description="Catalog API scheme and host"
    )
    catalog_storefront: str | None = Field(
        default="us", description="Two-letter storefront (region) code"
    )
    storefront_cache_ttl: int = Field(
        default=86400, description="TTL in seconds for the resolved storefront (default: 24 hours)"
    )
    catalog_timeout: float = Field(default=10.0, description="HTTP timeout in seconds")
    default_search_limit: int = Field(default=10, description="Default per-type search limit")

    # Catalog Rate Limiting Configuration
    catalog_rate_limit: int = Field(
        default=300, description="Max catalog API requests per minute"
    )
    catalog_max_concurrent: int = Field(
        default=5, description="Max concurrent catalog API requests"
    )

    # Application Configuration
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=8000, description="Port to run the server on")
    log_level: str = Field(default="INFO", description="Logging level")

    # Feature Flags
    enable_telemetry: bool = Field(default=True, description="Enable PostHog telemetry")

    # PostHog Configuration
    posthog_api_key: str | None = Field(None, description="PostHog API key for telemetry")
    posthog_host: str = Field(default="https://us.i.posthog.com", description="PostHog host URL")

    # Sentry Configuration
    sentry_dsn: str | None = Field(None, description="Sentry DSN for error tracking")

    # Application Metadata
    app_name: str = Field(default="Catalog-Reverse-Lookup", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")

    @property
    def has_credentials(self) -> bool:
        """Whether any credential source is configured."""
        return bool(self.catalog_token_url or self.catalog_developer_token)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
