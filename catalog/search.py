"""Keyword search across albums, songs and artists."""

import logging
from collections.abc import Sequence

from pydantic import ValidationError

from catalog.credentials import CredentialCache
from catalog.models import (
    RESOURCE_TYPE_ORDER,
    Credential,
    ResourceType,
    SearchEnvelope,
    SearchResultItem,
)
from catalog.transport import CatalogTransport
from core.exceptions import DecodeError, EmptySearchTermError, SearchError

logger = logging.getLogger(__name__)

MAX_SEARCH_LIMIT = 25


def validate_search(term: str, limit: int, types: Sequence[ResourceType]) -> str:
    """Check a search before any credential or network work; return the stripped term.

    Raises:
        EmptySearchTermError: If the term is blank
        SearchError: If limit or types are out of range
    """
    term = term.strip()
    if not term:
        raise EmptySearchTermError()
    if not 1 <= limit <= MAX_SEARCH_LIMIT:
        raise SearchError(
            f"Search limit must be between 1 and {MAX_SEARCH_LIMIT}",
            details={"limit": limit},
        )
    if not types:
        raise SearchError("At least one resource type must be searched")
    return term


def flatten_search_results(
    envelope: SearchEnvelope,
    types: Sequence[ResourceType] = RESOURCE_TYPE_ORDER,
) -> list[SearchResultItem]:
    """Flatten per-type result lists into one list: albums, then songs, then artists."""
    items: list[SearchResultItem] = []
    for resource_type in RESOURCE_TYPE_ORDER:
        if resource_type not in types:
            continue
        section = getattr(envelope.results, resource_type.value)
        records = section.data if section else []
        logger.info(f"Found {len(records)} {resource_type}")
        items.extend(record.to_search_item() for record in records)
    return items


class KeywordSearchClient:
    """Runs a single multi-type catalog search per call."""

    def __init__(self, credentials: CredentialCache, transport: CatalogTransport):
        self.credentials = credentials
        self.transport = transport

    async def fetch(
        self,
        term: str,
        limit: int,
        types: Sequence[ResourceType] = RESOURCE_TYPE_ORDER,
        credential: Credential | None = None,
    ) -> tuple[list[SearchResultItem], float]:
        """Search and return the flattened results with the round-trip time in ms.

        A credential already obtained by the caller is used as is; otherwise
        one is taken from the cache after validation.

        Raises:
            EmptySearchTermError: If the term is blank (no network call is made)
            SearchError: If limit or types are out of range
            CredentialError, TransportError, DecodeError: From the lower layers
        """
        term = validate_search(term, limit, types)

        logger.info(f"Starting search for: '{term}'")
        if credential is None:
            credential = await self.credentials.get_token()
        raw = await self.transport.send_search(term, types, limit, credential)

        try:
            envelope = SearchEnvelope.model_validate_json(raw.content)
        except ValidationError as e:
            logger.error(f"Search response decode error: {e}")
            raise DecodeError(e) from e

        items = flatten_search_results(envelope, types)
        logger.info(f"Search completed with {len(items)} total results")
        return items, raw.elapsed_ms

    async def search(
        self,
        term: str,
        limit: int,
        types: Sequence[ResourceType] = RESOURCE_TYPE_ORDER,
    ) -> list[SearchResultItem]:
        """Search the catalog and return results tagged by resource type."""
        items, _ = await self.fetch(term, limit, types)
        return items
