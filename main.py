"""Main application entry point for the Catalog Reverse-Lookup service."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request

from catalog.router import router as catalog_router
from config.settings import Settings, get_settings
from core.dependencies import (
    close_catalog_client,
    flush_posthog,
    get_catalog_client,
    shutdown_posthog,
)
from core.logging import setup_logging
from core.sentry import init_sentry
from routers.health import router as health_router

load_dotenv()

settings = get_settings()


def _log_file(settings: Settings) -> Path | None:
    """File logging is off in DEBUG; containers mount /app/logs."""
    if settings.log_level.upper() == "DEBUG":
        return None
    log_dir = Path("/app/logs") if Path("/app/logs").exists() else Path("logs")
    return log_dir / "catalog-reverse-lookup.log"


init_sentry(settings)
setup_logging(level=settings.log_level, log_file=_log_file(settings))

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the catalog client at startup and release its HTTP clients on shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    client = await get_catalog_client(settings)
    if client is None:
        logger.warning("No catalog credentials configured; catalog endpoints will answer 503")
    else:
        logger.info(
            f"Catalog client ready (provider: {type(client.credentials.provider).__name__}, "
            f"storefront: {settings.catalog_storefront}, "
            f"{settings.catalog_rate_limit} req/min, "
            f"{settings.catalog_max_concurrent} concurrent)"
        )

    yield

    logger.info("Shutting down application")
    shutdown_posthog()
    await close_catalog_client()
    logger.info("All services shut down")


async def posthog_flush_middleware(request: Request, call_next):
    """Flush PostHog events after each request to prevent data loss."""
    response = await call_next(request)
    flush_posthog()
    return response


def create_app() -> FastAPI:
    """Assemble the FastAPI application: health check plus the catalog API under /api/v1."""
    application = FastAPI(
        title=settings.app_name,
        description="Music catalog keyword search and mixed-type reverse lookup",
        version=settings.app_version,
        lifespan=lifespan,
    )
    application.middleware("http")(posthog_flush_middleware)
    application.include_router(health_router, prefix="", tags=["health"])
    application.include_router(catalog_router, prefix="/api/v1", tags=["catalog"])
    return application


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
