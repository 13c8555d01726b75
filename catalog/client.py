"""Catalog client: keyword search and batched reverse lookup.

reverse_lookup() runs strictly in sequence:
build lookup request -> get credential -> send request -> reconcile response.
"""

import logging
from collections.abc import Iterable, Sequence

from catalog.credentials import CredentialCache
from catalog.models import (
    RESOURCE_TYPE_ORDER,
    Credential,
    ResourceType,
    ReverseLookupResult,
    SearchResponse,
    SearchResultItem,
)
from catalog.reconciler import reconcile
from catalog.request_builder import build_lookup_spec
from catalog.search import KeywordSearchClient, validate_search
from catalog.transport import CatalogTransport
from core.exceptions import CredentialError
from core.sentry import add_lookup_breadcrumb
from core.telemetry import RequestTelemetry

logger = logging.getLogger(__name__)


class CatalogClient:
    """Entry point for catalog operations.

    The credential cache is owned by this object; every operation reads and
    refreshes it through get_token().
    """

    def __init__(self, credentials: CredentialCache, transport: CatalogTransport):
        self.credentials = credentials
        self.transport = transport
        self.keyword_search = KeywordSearchClient(credentials, transport)

    async def close(self):
        """Close the transport and, if it owns one, the token provider's client."""
        await self.transport.close()
        close_provider = getattr(self.credentials.provider, "close", None)
        if close_provider is not None:
            await close_provider()

    async def _credential(self, telemetry: RequestTelemetry | None) -> Credential:
        before = self.credentials.cached
        credential = await self.credentials.get_token()
        if telemetry is not None and credential is not before:
            telemetry.record_api_call("token")
        return credential

    async def check_api(self) -> bool:
        """Check that a credential can be obtained and the catalog accepts it."""
        try:
            credential = await self.credentials.get_token()
        except CredentialError as e:
            logger.warning(f"Catalog health check could not get a token: {e.reason}")
            return False
        return await self.transport.check_api(credential)

    async def search(
        self,
        term: str,
        limit: int,
        types: Sequence[ResourceType] = RESOURCE_TYPE_ORDER,
        telemetry: RequestTelemetry | None = None,
    ) -> SearchResponse:
        """Search the catalog for all requested types in one request.

        Invalid searches are rejected before a credential is requested or an
        API call is counted.
        """
        telemetry = telemetry or RequestTelemetry(operation="search")
        term = validate_search(term, limit, types)

        with telemetry.track_step("credential"):
            credential = await self._credential(telemetry)

        with telemetry.track_step("catalog_search"):
            telemetry.record_api_call("catalog")
            items, elapsed_ms = await self.keyword_search.fetch(
                term, limit, types, credential=credential
            )
        return SearchResponse(
            term=term,
            results=items,
            total=len(items),
            elapsed_ms=elapsed_ms,
        )

    async def reverse_lookup(
        self,
        requested_ids: Iterable[str],
        known_results: Sequence[SearchResultItem],
        telemetry: RequestTelemetry | None = None,
    ) -> ReverseLookupResult:
        """Resolve selected identifiers back into full catalog records.

        Identifiers without a known resource type, or that the catalog cannot
        resolve, are absent from the result; the completeness counts show how
        many were lost.

        Args:
            requested_ids: Identifiers the caller selected
            known_results: Search results the identifiers were selected from
            telemetry: Optional per-request telemetry

        Returns:
            ReverseLookupResult grouped by resource type

        Raises:
            CredentialError, TransportError, DecodeError: Any failure aborts the lookup
        """
        telemetry = telemetry or RequestTelemetry(operation="reverse_lookup")
        requested = list(dict.fromkeys(requested_ids))
        logger.info(f"Starting reverse lookup for {len(requested)} ids")

        with telemetry.track_step("build_request"):
            spec = build_lookup_spec(requested, known_results)

        # Untyped ids were dropped from the request but still count as requested
        typed_ids = {item_id for ids in spec.grouped_ids.values() for item_id in ids}
        untyped_count = len(set(requested) - typed_ids)

        if spec.is_empty:
            logger.info("No requested ids have a known resource type, skipping request")
            return ReverseLookupResult(requested_count=untyped_count, resolved_count=0)

        add_lookup_breadcrumb(spec)

        with telemetry.track_step("credential"):
            credential = await self._credential(telemetry)

        with telemetry.track_step("catalog_request"):
            telemetry.record_api_call("catalog")
            raw = await self.transport.send(spec, credential)

        with telemetry.track_step("reconcile"):
            result = reconcile(raw.content, spec.requested_pairs(), untyped_count=untyped_count)

        result.elapsed_ms = raw.elapsed_ms
        logger.info(
            f"Retrieved {result.resolved_count}/{result.requested_count} items "
            f"in {raw.elapsed_ms:.0f} ms"
        )
        return result
