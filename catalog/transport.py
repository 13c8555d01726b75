"""HTTP transport for the catalog API with outcome classification."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from catalog.models import RESOURCE_TYPE_ORDER, Credential, LookupRequestSpec, ResourceType
from catalog.ratelimit import get_throttle
from catalog.storefront import StorefrontProvider
from core.exceptions import ApiError, NetworkError, StorefrontUnavailableError
from core.sentry import add_catalog_breadcrumb
from core.telemetry import record_api_time, record_catalog_api_call

logger = logging.getLogger(__name__)

CATALOG_API_BASE = "https://api.music.apple.com"


@dataclass(frozen=True)
class RawResponse:
    """Body of a 200 response plus the round-trip time that produced it."""

    content: bytes
    elapsed_ms: float


def decode_body_text(content: bytes) -> str:
    """Decode an error body as UTF-8, or return "" if it is not text."""
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return ""


class CatalogTransport:
    """Issues single GET requests against the catalog API.

    Every call is a fresh request: nothing is retried and nothing is cached.
    The bearer credential is supplied per call because it rotates.
    """

    def __init__(
        self,
        storefront_provider: StorefrontProvider,
        base_url: str = CATALOG_API_BASE,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.storefront_provider = storefront_provider
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": "CatalogReverseLookupService/1.0",
                },
                timeout=self.timeout,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _storefront(self) -> str:
        try:
            return await self.storefront_provider.storefront()
        except StorefrontUnavailableError:
            logger.error("Failed to get storefront")
            raise
        except Exception as e:
            logger.error(f"Failed to get storefront: {e}")
            raise StorefrontUnavailableError(f"Storefront lookup failed: {e}") from e

    async def send(self, spec: LookupRequestSpec, credential: Credential) -> RawResponse:
        """Fetch every resource named in the lookup request with one GET.

        Raises:
            StorefrontUnavailableError: Before any request, if the region is unknown
            NetworkError: If no HTTP response was received
            ApiError: If the catalog answered with a non-200 status
        """
        storefront = await self._storefront()
        return await self._get(f"/v1/catalog/{storefront}", spec.to_query_params(), credential)

    async def send_search(
        self,
        term: str,
        types: Sequence[ResourceType],
        limit: int,
        credential: Credential,
    ) -> RawResponse:
        """Run one keyword search across the given resource types."""
        storefront = await self._storefront()
        ordered = [t for t in RESOURCE_TYPE_ORDER if t in types]
        params = [
            ("term", term),
            ("types", ",".join(ordered)),
            ("limit", str(limit)),
        ]
        return await self._get(f"/v1/catalog/{storefront}/search", params, credential)

    async def check_api(self, credential: Credential) -> bool:
        """Check that the catalog API accepts the credential."""
        try:
            await self._get("/v1/test", [], credential)
            return True
        except (NetworkError, ApiError):
            return False

    async def _get(
        self,
        path: str,
        params: list[tuple[str, str]],
        credential: Credential,
    ) -> RawResponse:
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {credential.token}"}

        add_catalog_breadcrumb("catalog_request", {"path": path})
        logger.info(f"Sending catalog request: {path}")

        async with get_throttle():
            start = time.perf_counter()
            try:
                response = await client.get(path, params=params, headers=headers)
            except httpx.RequestError as e:
                elapsed_ms = (time.perf_counter() - start) * 1000
                record_api_time(elapsed_ms)
                logger.error(f"Catalog request failed after {elapsed_ms:.0f} ms: {e}")
                add_catalog_breadcrumb("network_error", {"error": str(e)}, level="error")
                raise NetworkError(e) from e

        elapsed_ms = (time.perf_counter() - start) * 1000
        record_api_time(elapsed_ms)
        record_catalog_api_call()
        logger.info(
            f"Catalog HTTP {response.status_code} in {elapsed_ms:.0f} ms "
            f"({len(response.content)} bytes)"
        )

        if response.status_code != 200:
            body = decode_body_text(response.content)
            logger.error(f"Catalog API error ({response.status_code}): {body}")
            add_catalog_breadcrumb(
                "api_error", {"status_code": response.status_code}, level="error"
            )
            raise ApiError(response.status_code, body)

        return RawResponse(content=response.content, elapsed_ms=elapsed_ms)
