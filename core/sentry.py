"""Sentry error tracking for catalog operations."""

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from catalog.models import LookupRequestSpec
from config.settings import Settings
from core.exceptions import ApiError, CredentialError

logger = logging.getLogger(__name__)


def init_sentry(settings: Settings) -> None:
    """Initialize the Sentry SDK from application settings.

    Does nothing when no DSN is configured. The configured storefront is set
    as a global tag so every event shows which region it came from.
    """
    if not settings.sentry_dsn:
        logger.info("Sentry DSN not configured, skipping initialization")
        return

    environment = "development" if settings.log_level.upper() == "DEBUG" else "production"
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=environment,
        release=settings.app_version,
        integrations=[FastApiIntegration()],
        traces_sample_rate=1.0,
        sample_rate=1.0,
    )
    sentry_sdk.set_tag("catalog.storefront", settings.catalog_storefront or "unknown")

    logger.info(f"Sentry initialized (environment: {environment})")


def add_catalog_breadcrumb(
    operation: str,
    data: dict[str, Any] | None = None,
    level: str = "info",
) -> None:
    """Add a breadcrumb for a catalog operation.

    Args:
        operation: Name of the operation (e.g., "catalog_request", "token_refresh")
        data: Optional dictionary of contextual data
        level: Severity level ("debug", "info", "warning", "error")
    """
    sentry_sdk.add_breadcrumb(
        category="catalog",
        message=operation,
        data=data or {},
        level=level,
    )


def add_lookup_breadcrumb(spec: LookupRequestSpec) -> None:
    """Record the shape of an outgoing reverse lookup: id counts per type."""
    data: dict[str, Any] = {str(t): len(ids) for t, ids in spec.grouped_ids.items()}
    data["include"] = ",".join(spec.include)
    add_catalog_breadcrumb("reverse_lookup", data)


def error_tags(error: Exception) -> dict[str, str]:
    """Searchable tags describing a catalog failure."""
    tags = {"catalog.error": type(error).__name__}
    if isinstance(error, CredentialError):
        tags["catalog.credential_reason"] = str(error.reason)
    if isinstance(error, ApiError):
        tags["catalog.upstream_status"] = str(error.status_code)
    return tags


def capture_catalog_exception(error: Exception, operation: str, **context: Any) -> None:
    """Report a failed catalog operation together with its request context.

    Args:
        error: The exception to capture
        operation: "search" or "reverse_lookup"
        **context: Request details (counts, storefront, ...); None values are omitted
    """
    sentry_sdk.set_context(
        "catalog",
        {"operation": operation, **{k: v for k, v in context.items() if v is not None}},
    )
    for key, value in error_tags(error).items():
        sentry_sdk.set_tag(key, value)

    sentry_sdk.capture_exception(error)
