"""Storefront (region) code providers."""

import logging
import re
from typing import Protocol

from cachetools import TTLCache  # type: ignore[import-untyped]

from core.exceptions import StorefrontUnavailableError

logger = logging.getLogger(__name__)

STOREFRONT_PATTERN = re.compile(r"^[a-z]{2}$")


class StorefrontProvider(Protocol):
    """Supplies the caller's two-letter storefront code."""

    async def storefront(self) -> str:
        """Return the storefront code or raise StorefrontUnavailableError."""
        ...


def normalize_storefront(code: str | None) -> str:
    """Validate and lowercase a storefront code.

    Raises:
        StorefrontUnavailableError: If the code is missing or not two letters
    """
    normalized = (code or "").strip().lower()
    if not STOREFRONT_PATTERN.match(normalized):
        raise StorefrontUnavailableError(
            "Storefront code is unavailable", details={"storefront": code}
        )
    return normalized


class ConfiguredStorefront:
    """Storefront fixed by configuration."""

    def __init__(self, code: str | None):
        self.code = code

    async def storefront(self) -> str:
        return normalize_storefront(self.code)


class CachedStorefront:
    """Remembers another provider's answer for ``ttl`` seconds.

    Failures are not cached, so the next call asks the wrapped provider again.
    """

    _KEY = "storefront"

    def __init__(self, provider: StorefrontProvider, ttl: int = 86400):
        self.provider = provider
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=ttl)

    def clear(self) -> None:
        self._cache.clear()

    async def storefront(self) -> str:
        if self._KEY in self._cache:
            return self._cache[self._KEY]  # type: ignore[no-any-return]
        code = normalize_storefront(await self.provider.storefront())
        self._cache[self._KEY] = code
        logger.debug(f"Resolved storefront: {code}")
        return code
