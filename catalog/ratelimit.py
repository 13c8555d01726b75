"""Client-side throttling for catalog API requests.

Requests wait for a slot instead of being retried. A throttle combines a cap
on in-flight requests with a requests-per-minute budget, and one exists per
event loop because asyncio primitives bind to the loop they were created on.
"""

import asyncio
import logging

from aiolimiter import AsyncLimiter

from config.settings import get_settings

logger = logging.getLogger(__name__)


class CatalogThrottle:
    """Async context manager gating one catalog request."""

    def __init__(self, rate_per_minute: int, max_concurrent: int):
        self.limiter = AsyncLimiter(rate_per_minute, 60)
        self.semaphore = asyncio.Semaphore(max_concurrent)

    @property
    def saturated(self) -> bool:
        """Whether the next request would have to wait."""
        return self.semaphore.locked() or not self.limiter.has_capacity()

    async def __aenter__(self) -> "CatalogThrottle":
        if self.saturated:
            logger.debug("Catalog request throttled, waiting for a slot")
        await self.semaphore.acquire()
        try:
            await self.limiter.acquire()
        except BaseException:
            self.semaphore.release()
            raise
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.semaphore.release()


_throttles: dict[asyncio.AbstractEventLoop, CatalogThrottle] = {}


def get_throttle() -> CatalogThrottle:
    """Get or create the throttle for the running event loop, sized from settings."""
    loop = asyncio.get_running_loop()
    if loop not in _throttles:
        settings = get_settings()
        _throttles[loop] = CatalogThrottle(
            settings.catalog_rate_limit, settings.catalog_max_concurrent
        )
        logger.debug(
            f"Created catalog throttle: {settings.catalog_rate_limit} req/min, "
            f"{settings.catalog_max_concurrent} concurrent"
        )
    return _throttles[loop]


def reset_throttles() -> None:
    """Forget every per-loop throttle."""
    _throttles.clear()
