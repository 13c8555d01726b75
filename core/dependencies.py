"""FastAPI dependency injection providers."""

import logging

from fastapi import Depends
from posthog import Posthog

from catalog.client import CatalogClient
from catalog.credentials import (
    CredentialCache,
    CredentialProvider,
    RemoteTokenProvider,
    StaticTokenProvider,
)
from catalog.storefront import CachedStorefront, ConfiguredStorefront
from catalog.transport import CatalogTransport
from config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Module-level instances for lifecycle management
_catalog_client: CatalogClient | None = None
_posthog_client: Posthog | None = None


def build_credential_provider(settings: Settings) -> CredentialProvider:
    """Pick the token source: a token endpoint if configured, else the static token."""
    if settings.catalog_token_url:
        logger.info("Using remote token provider")
        return RemoteTokenProvider(settings.catalog_token_url, timeout=settings.catalog_timeout)
    return StaticTokenProvider(settings.catalog_developer_token)


def build_catalog_client(settings: Settings) -> CatalogClient:
    """Wire the credential cache, storefront and transport into a CatalogClient."""
    credentials = CredentialCache(
        build_credential_provider(settings),
        validity_seconds=settings.token_validity_seconds,
    )
    storefront = CachedStorefront(
        ConfiguredStorefront(settings.catalog_storefront),
        ttl=settings.storefront_cache_ttl,
    )
    transport = CatalogTransport(
        storefront,
        base_url=settings.catalog_api_base,
        timeout=settings.catalog_timeout,
    )
    return CatalogClient(credentials, transport)


async def get_catalog_client(
    settings: Settings = Depends(get_settings),
) -> CatalogClient | None:
    """Get the catalog client, or None when no credential source is configured.

    Args:
        settings: Application settings

    Returns:
        Optional[CatalogClient]: Shared catalog client if configured, None otherwise
    """
    global _catalog_client

    if not settings.has_credentials:
        logger.debug("No catalog credentials configured - catalog client disabled")
        return None

    if _catalog_client is None:
        _catalog_client = build_catalog_client(settings)
        logger.info(
            f"Catalog client initialized (storefront: {settings.catalog_storefront}, "
            f"token validity: {settings.token_validity_seconds}s)"
        )

    return _catalog_client


async def close_catalog_client() -> None:
    """Close the catalog client and its HTTP clients."""
    global _catalog_client
    if _catalog_client:
        await _catalog_client.close()
        _catalog_client = None


def get_posthog_client(settings: Settings = Depends(get_settings)) -> Posthog | None:
    """Get PostHog client instance.

    Args:
        settings: Application settings

    Returns:
        Optional[Posthog]: PostHog client if configured and enabled, None otherwise
    """
    global _posthog_client

    if not settings.enable_telemetry:
        logger.debug("Telemetry disabled")
        return None

    if not settings.posthog_api_key:
        logger.debug("POSTHOG_API_KEY not set - telemetry disabled")
        return None

    if _posthog_client is None:
        _posthog_client = Posthog(
            project_api_key=settings.posthog_api_key,
            host=settings.posthog_host,
        )
        logger.info(f"PostHog client initialized (host: {settings.posthog_host})")

    return _posthog_client


def flush_posthog() -> None:
    """Flush any buffered PostHog events."""
    if _posthog_client:
        _posthog_client.flush()


def shutdown_posthog() -> None:
    """Shutdown PostHog client gracefully."""
    global _posthog_client
    if _posthog_client:
        _posthog_client.shutdown()
        _posthog_client = None
        logger.info("PostHog client shutdown")
