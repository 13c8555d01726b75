"""Health check router with real dependency connectivity checks."""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from catalog.client import CatalogClient
from config.settings import Settings, get_settings
from core.dependencies import get_catalog_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 3.0
CORE_SERVICES = {"catalog_api"}


async def _check_catalog_api(client: CatalogClient | None) -> str:
    """Obtain a credential and ping the catalog API with it."""
    if client is None:
        return "unavailable"
    return "ok" if await client.check_api() else "error"


async def _check_storefront(client: CatalogClient | None) -> str:
    """Resolve the configured storefront code."""
    if client is None:
        return "unavailable"
    try:
        await client.transport.storefront_provider.storefront()
    except Exception as e:
        logger.warning(f"Storefront check failed: {e}")
        return "error"
    return "ok"


async def _run_check(coro) -> str:
    """Run a single health check with a timeout."""
    try:
        return await asyncio.wait_for(coro, timeout=CHECK_TIMEOUT)
    except TimeoutError:
        return "timeout"


@router.get(
    "/health",
    summary="Health check",
    responses={
        200: {"description": "Service is healthy or degraded"},
        503: {"description": "Service is unhealthy (catalog unreachable or unconfigured)"},
    },
)
async def health_check(
    settings: Settings = Depends(get_settings),
    client: CatalogClient | None = Depends(get_catalog_client),
):
    """Health check with real connectivity checks for every dependency."""
    results = await asyncio.gather(
        _run_check(_check_catalog_api(client)),
        _run_check(_check_storefront(client)),
    )

    services = {
        "catalog_api": results[0],
        "storefront": results[1],
    }

    core_ok = all(services[s] == "ok" for s in CORE_SERVICES)
    all_ok = all(v == "ok" for v in services.values())

    if core_ok and all_ok:
        status = "healthy"
    elif core_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    body = {
        "status": status,
        "version": settings.app_version,
        "services": services,
    }

    status_code = 200 if status in ("healthy", "degraded") else 503
    return JSONResponse(content=body, status_code=status_code)
