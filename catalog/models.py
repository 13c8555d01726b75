"""Pydantic models for catalog resources, requests and lookup results."""

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

INCLUDE_RELATED = ("artists", "albums")


class ResourceType(StrEnum):
    """Top-level catalog entity classification, using the API's wire tags."""

    ALBUMS = "albums"
    SONGS = "songs"
    ARTISTS = "artists"


# Canonical ordering for request groups and flattened search results
RESOURCE_TYPE_ORDER: tuple[ResourceType, ...] = (
    ResourceType.ALBUMS,
    ResourceType.SONGS,
    ResourceType.ARTISTS,
)


class Completeness(StrEnum):
    """How much of a reverse lookup the catalog could resolve."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    EMPTY = "empty"


class Credential(BaseModel):
    """A bearer token with the moment the cache stops trusting it."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(repr=False)
    expires_at: float

    def is_usable(self, now: float) -> bool:
        return now < self.expires_at


class SearchResultItem(BaseModel):
    """A single keyword search hit, tagged with its resource type.

    Ids are unique within a resource type only.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    artist_name: str = ""
    resource_type: ResourceType
    native: dict[str, Any] = Field(default_factory=dict, repr=False)


class LookupRequestSpec(BaseModel):
    """Identifiers grouped by resource type for one batched catalog request."""

    model_config = ConfigDict(frozen=True)

    grouped_ids: dict[ResourceType, tuple[str, ...]] = Field(default_factory=dict)
    include: tuple[str, ...] = INCLUDE_RELATED

    @property
    def requested_count(self) -> int:
        return sum(len(ids) for ids in self.grouped_ids.values())

    @property
    def is_empty(self) -> bool:
        return self.requested_count == 0

    def requested_pairs(self) -> set[tuple[ResourceType, str]]:
        """Every (type, id) pair the request asks the catalog for."""
        return {
            (resource_type, item_id)
            for resource_type, ids in self.grouped_ids.items()
            for item_id in ids
        }

    def to_query_params(self) -> list[tuple[str, str]]:
        """Render the grouped ids as ordered query parameters."""
        params = [
            (f"ids[{resource_type}]", ",".join(self.grouped_ids[resource_type]))
            for resource_type in RESOURCE_TYPE_ORDER
            if self.grouped_ids.get(resource_type)
        ]
        params.append(("include", ",".join(self.include)))
        return params


# ---------------------------------------------------------------------------
# Wire records (decoded from the catalog's JSON envelope)
# ---------------------------------------------------------------------------


class CatalogModel(BaseModel):
    """Base model for catalog API payloads."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class Artwork(CatalogModel):
    url: str | None = None
    width: int | None = None
    height: int | None = None

    def resolved_url(self, size: int | None = None) -> str | None:
        """Fill the {w}x{h} template with the given size or the native dimensions."""
        if not self.url:
            return None
        width = size or self.width
        height = size or self.height
        if width is None or height is None:
            return self.url
        return self.url.replace("{w}", str(width)).replace("{h}", str(height))


class RecordAttributes(CatalogModel):
    name: str
    artist_name: str | None = Field(default=None, alias="artistName")
    release_date: str | None = Field(default=None, alias="releaseDate")
    track_count: int | None = Field(default=None, alias="trackCount")
    genre_names: list[str] | None = Field(default=None, alias="genreNames")
    artwork: Artwork | None = None
    url: str | None = None


class _CatalogRecord(CatalogModel):
    id: str
    attributes: RecordAttributes

    def to_resource(self) -> "ResolvedResource":
        attrs = self.attributes
        return ResolvedResource(
            id=self.id,
            resource_type=ResourceType(self.type),  # type: ignore[attr-defined]
            name=attrs.name,
            secondary_name=attrs.artist_name,
            release_date=attrs.release_date,
            track_count=attrs.track_count,
            genre_names=attrs.genre_names,
            artwork_url=attrs.artwork.resolved_url() if attrs.artwork else None,
            url=attrs.url,
        )

    def to_search_item(self) -> SearchResultItem:
        attrs = self.attributes
        return SearchResultItem(
            id=self.id,
            name=attrs.name,
            # Artists carry no artistName; they are their own secondary name
            artist_name=attrs.artist_name or attrs.name,
            resource_type=ResourceType(self.type),  # type: ignore[attr-defined]
            native=self.model_dump(by_alias=True, exclude_none=True),
        )


class AlbumRecord(_CatalogRecord):
    type: Literal["albums"]


class SongRecord(_CatalogRecord):
    type: Literal["songs"]


class ArtistRecord(_CatalogRecord):
    type: Literal["artists"]


CatalogRecord = Annotated[AlbumRecord | SongRecord | ArtistRecord, Field(discriminator="type")]


class ResourceEnvelope(CatalogModel):
    """Top-level body of a multi-resource catalog response."""

    data: list[CatalogRecord]


class SearchSection(CatalogModel):
    data: list[CatalogRecord] = []


class SearchResults(CatalogModel):
    albums: SearchSection | None = None
    songs: SearchSection | None = None
    artists: SearchSection | None = None


class SearchEnvelope(CatalogModel):
    """Top-level body of a catalog search response."""

    results: SearchResults = SearchResults()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ResolvedResource(BaseModel):
    """A catalog record resolved from a reverse lookup."""

    id: str
    resource_type: ResourceType
    name: str
    secondary_name: str | None = None
    release_date: str | None = None
    track_count: int | None = None
    genre_names: list[str] | None = None
    artwork_url: str | None = None
    url: str | None = None


class ReverseLookupResult(BaseModel):
    """Resolved records grouped by type, with completeness against the request."""

    groups: dict[ResourceType, list[ResolvedResource]] = {}
    requested_count: int = 0
    resolved_count: int = 0
    elapsed_ms: float | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completeness(self) -> Completeness:
        if self.resolved_count >= self.requested_count:
            return Completeness.COMPLETE
        if self.resolved_count == 0:
            return Completeness.EMPTY
        return Completeness.PARTIAL

    @computed_field  # type: ignore[prop-decorator]
    @property
    def missing_count(self) -> int:
        return max(self.requested_count - self.resolved_count, 0)

    def count_by_type(self) -> dict[ResourceType, int]:
        return {resource_type: len(items) for resource_type, items in self.groups.items()}


# ---------------------------------------------------------------------------
# HTTP API contract
# ---------------------------------------------------------------------------


class SearchResponse(BaseModel):
    """Response for GET /catalog/search."""

    term: str
    results: list[SearchResultItem] = []
    total: int = 0
    elapsed_ms: float | None = None


class ReverseLookupRequest(BaseModel):
    """Request body for POST /catalog/reverse-lookup."""

    ids: list[str]
    known_results: list[SearchResultItem] = []


class ReverseLookupResponse(ReverseLookupResult):
    """Response for POST /catalog/reverse-lookup."""

    selected_count: int = 0
