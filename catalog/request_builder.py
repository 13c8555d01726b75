"""Builds batched reverse-lookup requests from selected identifiers."""

import logging
from collections.abc import Iterable, Sequence

from catalog.models import (
    INCLUDE_RELATED,
    RESOURCE_TYPE_ORDER,
    LookupRequestSpec,
    ResourceType,
    SearchResultItem,
)

logger = logging.getLogger(__name__)


def build_lookup_spec(
    requested_ids: Iterable[str],
    known_results: Sequence[SearchResultItem],
) -> LookupRequestSpec:
    """Partition the requested identifiers by resource type.

    Only identifiers that appear in known_results can be typed, so any
    requested id without a known result is dropped. The same id may
    legitimately appear under two types; each (type, id) pair is kept once.

    Args:
        requested_ids: Identifiers the caller selected
        known_results: Tagged search results the identifiers came from

    Returns:
        LookupRequestSpec with one group per non-empty resource type
    """
    wanted = set(requested_ids)
    grouped: dict[ResourceType, dict[str, None]] = {}

    for item in known_results:
        if item.id in wanted:
            grouped.setdefault(item.resource_type, {})[item.id] = None

    matched = {item_id for ids in grouped.values() for item_id in ids}
    dropped = wanted - matched
    if dropped:
        logger.info(f"Dropping {len(dropped)} requested ids with no known resource type")

    spec = LookupRequestSpec(
        grouped_ids={
            resource_type: tuple(grouped[resource_type])
            for resource_type in RESOURCE_TYPE_ORDER
            if grouped.get(resource_type)
        },
        include=INCLUDE_RELATED,
    )
    for resource_type, ids in spec.grouped_ids.items():
        logger.debug(f"{resource_type} ids: {','.join(ids)}")
    return spec
