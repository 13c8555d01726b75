"""Decodes catalog payloads and reconciles them against the request."""

import logging
from collections.abc import Collection

from pydantic import ValidationError

from catalog.models import (
    RESOURCE_TYPE_ORDER,
    ResolvedResource,
    ResourceEnvelope,
    ResourceType,
    ReverseLookupResult,
)
from core.exceptions import DecodeError

logger = logging.getLogger(__name__)


def decode_resources(raw: bytes) -> list[ResolvedResource]:
    """Decode a multi-resource envelope into resolved resources, in payload order.

    A record repeated under the same type and id is kept once.

    Raises:
        DecodeError: If the payload is not JSON or does not match the envelope
    """
    try:
        envelope = ResourceEnvelope.model_validate_json(raw)
    except ValidationError as e:
        logger.error(f"JSON decode error: {e}")
        logger.debug(f"Response JSON: {raw[:2000]!r}")
        raise DecodeError(e) from e

    resources: list[ResolvedResource] = []
    seen: set[tuple[ResourceType, str]] = set()
    for record in envelope.data:
        resource = record.to_resource()
        key = (resource.resource_type, resource.id)
        if key in seen:
            continue
        seen.add(key)
        resources.append(resource)
    return resources


def match_requested(
    resources: list[ResolvedResource],
    requested: Collection[tuple[ResourceType, str]],
) -> list[ResolvedResource]:
    """Keep the resources that answer a requested (type, id) pair, in payload order.

    Each pair is answered at most once. Exact matches claim their pair first;
    a record tagged with another type than it was requested under still
    answers for its id if that id has an open pair left. Records for ids that
    were never requested are dropped.
    """
    open_pairs = set(requested)
    kept: dict[int, ResolvedResource] = {}

    for index, resource in enumerate(resources):
        key = (resource.resource_type, resource.id)
        if key in open_pairs:
            open_pairs.discard(key)
            kept[index] = resource

    for index, resource in enumerate(resources):
        if index in kept:
            continue
        for resource_type in RESOURCE_TYPE_ORDER:
            if (resource_type, resource.id) in open_pairs:
                open_pairs.discard((resource_type, resource.id))
                kept[index] = resource
                break

    unrequested = [r for i, r in enumerate(resources) if i not in kept]
    if unrequested:
        logger.warning(
            f"Ignoring {len(unrequested)} unrequested records: "
            + ", ".join(f"{r.resource_type}/{r.id}" for r in unrequested[:10])
        )
    return [kept[i] for i in sorted(kept)]


def group_by_type(resources: list[ResolvedResource]) -> dict[ResourceType, list[ResolvedResource]]:
    """Group resources by their own type tag, keeping payload order within a group."""
    grouped: dict[ResourceType, list[ResolvedResource]] = {}
    for resource in resources:
        grouped.setdefault(resource.resource_type, []).append(resource)
    return {t: grouped[t] for t in RESOURCE_TYPE_ORDER if t in grouped}


def reconcile(
    raw: bytes,
    requested: Collection[tuple[ResourceType, str]],
    untyped_count: int = 0,
) -> ReverseLookupResult:
    """Turn a raw catalog response into a grouped, counted lookup result.

    Identifiers the catalog could not resolve are simply absent; that is a
    partial result, not an error. Only records answering a requested pair
    are grouped or counted, so the resolved count never exceeds the
    requested count.

    Args:
        raw: Body of a successful catalog response
        requested: (type, id) pairs sent in the request
        untyped_count: Selected ids left out of the request for lack of a type

    Returns:
        ReverseLookupResult with per-type groups and completeness counts
    """
    resources = match_requested(decode_resources(raw), requested)
    groups = group_by_type(resources)

    logger.info(f"Successfully decoded {len(resources)} requested items")
    for resource_type, items in groups.items():
        logger.info(f"{resource_type}: {len(items)} items")

    return ReverseLookupResult(
        groups=groups,
        requested_count=len(requested) + untyped_count,
        resolved_count=len(resources),
    )
