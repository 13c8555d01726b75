"""FastAPI router for catalog search and reverse lookup."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from posthog import Posthog

from catalog.client import CatalogClient
from catalog.models import (
    RESOURCE_TYPE_ORDER,
    ResourceType,
    ReverseLookupRequest,
    ReverseLookupResponse,
    SearchResponse,
)
from catalog.search import MAX_SEARCH_LIMIT
from config.settings import Settings, get_settings
from core.dependencies import get_catalog_client, get_posthog_client
from core.exceptions import (
    ApiError,
    CatalogServiceError,
    CredentialError,
    DecodeError,
    NetworkError,
    SearchError,
    StorefrontUnavailableError,
)
from core.messages import user_message
from core.sentry import capture_catalog_exception
from core.telemetry import RequestTelemetry, init_catalog_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])

STATUS_BY_ERROR: list[tuple[type[CatalogServiceError], int]] = [
    (SearchError, 400),
    (CredentialError, 503),
    (StorefrontUnavailableError, 503),
    (NetworkError, 504),
    (ApiError, 502),
    (DecodeError, 502),
]


def _require_client(client: CatalogClient | None) -> CatalogClient:
    """Raise 503 if the catalog client is not available."""
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Catalog client is not configured. Set CATALOG_DEVELOPER_TOKEN "
            "or CATALOG_TOKEN_URL environment variable.",
        )
    return client


def to_http_exception(error: CatalogServiceError) -> HTTPException:
    """Map a catalog error to an HTTPException carrying a user-facing message."""
    status_code = 500
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code = code
            break

    detail: dict = {"error": type(error).__name__, "message": user_message(error)}
    if isinstance(error, CredentialError):
        detail["reason"] = str(error.reason)
    if isinstance(error, ApiError):
        detail["upstream_status"] = error.status_code
    return HTTPException(status_code=status_code, detail=detail)


def _fail(error: Exception, operation: str, **context) -> HTTPException:
    """Log a failed operation, report it to Sentry if unexpected, and map it to HTTP.

    Undecodable catalog payloads are reported too, since they mean the API
    contract has drifted.
    """
    if isinstance(error, CatalogServiceError) and not isinstance(error, DecodeError):
        logger.warning(f"{operation} failed: {error.message}")
        return to_http_exception(error)

    logger.error(f"{operation} failed: {error}")
    capture_catalog_exception(error, operation, **context)
    if isinstance(error, DecodeError):
        return to_http_exception(error)
    return HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Keyword search across albums, songs and artists",
    responses={
        200: {"description": "Flattened search results returned"},
        400: {"description": "Empty search term"},
        502: {"description": "Catalog API error"},
        503: {"description": "Catalog client or credential unavailable"},
    },
)
async def search_catalog(
    term: str = Query(..., description="Free-text search term"),
    limit: int | None = Query(
        None,
        ge=1,
        le=MAX_SEARCH_LIMIT,
        description="Maximum results per type (defaults to DEFAULT_SEARCH_LIMIT)",
    ),
    types: list[ResourceType] = Query(
        default=list(RESOURCE_TYPE_ORDER), description="Resource types to search"
    ),
    settings: Settings = Depends(get_settings),
    client: CatalogClient | None = Depends(get_catalog_client),
    posthog_client: Posthog | None = Depends(get_posthog_client),
) -> SearchResponse:
    """Search the catalog and return one list tagged by resource type."""
    svc = _require_client(client)
    init_catalog_stats()
    telemetry = RequestTelemetry(operation="search")

    limit = limit or settings.default_search_limit

    try:
        response = await svc.search(term, limit, types, telemetry=telemetry)
    except Exception as e:
        raise _fail(
            e,
            "search",
            term_length=len(term),
            limit=limit,
            types=[str(t) for t in types],
            storefront=settings.catalog_storefront,
        ) from e

    if posthog_client:
        telemetry.send_to_posthog(
            posthog_client,
            {"results_count": response.total, "types": [str(t) for t in types], "limit": limit},
        )
    return response


@router.post(
    "/reverse-lookup",
    response_model=ReverseLookupResponse,
    summary="Resolve selected identifiers back into catalog records",
    responses={
        200: {"description": "Resolved records grouped by type (possibly partial)"},
        502: {"description": "Catalog API error or undecodable response"},
        503: {"description": "Catalog client, credential or storefront unavailable"},
        504: {"description": "Network failure reaching the catalog"},
    },
)
async def reverse_lookup(
    request: ReverseLookupRequest,
    client: CatalogClient | None = Depends(get_catalog_client),
    posthog_client: Posthog | None = Depends(get_posthog_client),
    settings: Settings = Depends(get_settings),
) -> ReverseLookupResponse:
    """Resolve a mixed-type batch of identifiers with one catalog request."""
    svc = _require_client(client)
    init_catalog_stats()
    telemetry = RequestTelemetry(operation="reverse_lookup")

    try:
        result = await svc.reverse_lookup(request.ids, request.known_results, telemetry=telemetry)
    except Exception as e:
        raise _fail(
            e,
            "reverse_lookup",
            selected_count=len(request.ids),
            known_count=len(request.known_results),
            storefront=settings.catalog_storefront,
        ) from e

    response = ReverseLookupResponse(
        **result.model_dump(exclude={"completeness", "missing_count"}),
        selected_count=len(request.ids),
    )

    if posthog_client:
        telemetry.send_to_posthog(
            posthog_client,
            {
                "requested_count": response.requested_count,
                "resolved_count": response.resolved_count,
                "completeness": str(response.completeness),
                "resolved_by_type": {str(t): n for t, n in result.count_by_type().items()},
            },
        )
    return response
