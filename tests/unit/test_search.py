"""Unit tests for catalog/search.py."""

import httpx
import pytest

from catalog.credentials import CredentialCache
from catalog.models import ResourceType, SearchEnvelope
from catalog.search import KeywordSearchClient, flatten_search_results, validate_search
from core.exceptions import (
    ApiError,
    CredentialError,
    CredentialFailureReason,
    DecodeError,
    EmptySearchTermError,
    SearchError,
)
from tests.conftest import FakeTokenProvider
from tests.factories import make_credential, make_record, search_payload
from tests.unit.conftest import RecordingHandler, make_transport

PAYLOAD = search_payload(
    albums=[make_record("a1", "albums"), make_record("a2", "albums")],
    songs=[make_record("s1", "songs")],
    artists=[make_record("r1", "artists", name="Daft Punk")],
)


def _client(handler, provider=None, clock=None):
    cache = CredentialCache(provider or FakeTokenProvider(), clock=clock or (lambda: 0.0))
    return KeywordSearchClient(cache, make_transport(handler))


class TestFlattenSearchResults:
    def test_album_then_song_then_artist(self):
        envelope = SearchEnvelope.model_validate_json(PAYLOAD)

        items = flatten_search_results(envelope)

        assert [(i.resource_type, i.id) for i in items] == [
            (ResourceType.ALBUMS, "a1"),
            (ResourceType.ALBUMS, "a2"),
            (ResourceType.SONGS, "s1"),
            (ResourceType.ARTISTS, "r1"),
        ]

    def test_missing_sections_are_empty(self):
        envelope = SearchEnvelope.model_validate_json(
            search_payload(songs=[make_record("s1", "songs")])
        )

        items = flatten_search_results(envelope)

        assert [i.id for i in items] == ["s1"]

    def test_artist_is_its_own_secondary_name(self):
        envelope = SearchEnvelope.model_validate_json(PAYLOAD)

        artist = flatten_search_results(envelope)[-1]

        assert artist.artist_name == "Daft Punk"

    def test_native_keeps_raw_record(self):
        envelope = SearchEnvelope.model_validate_json(PAYLOAD)

        album = flatten_search_results(envelope)[0]

        assert album.native["id"] == "a1"
        assert album.native["attributes"]["artistName"] == "Test Artist"


class TestValidateSearch:
    def test_returns_stripped_term(self):
        assert validate_search("  homework ", 10, [ResourceType.ALBUMS]) == "homework"

    def test_no_types_rejected(self):
        with pytest.raises(SearchError):
            validate_search("x", 10, [])

    def test_blank_term_checked_before_limit(self):
        with pytest.raises(EmptySearchTermError):
            validate_search(" ", 0, [])


class TestKeywordSearchClient:
    @pytest.mark.asyncio
    async def test_single_request_for_all_types(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, content=PAYLOAD))

        items = await _client(handler).search("daft punk", limit=10)

        assert len(handler.requests) == 1
        params = handler.requests[0].url.params
        assert params["types"] == "albums,songs,artists"
        assert params["limit"] == "10"
        assert [i.id for i in items] == ["a1", "a2", "s1", "r1"]

    @pytest.mark.asyncio
    async def test_term_is_stripped(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, content=PAYLOAD))

        await _client(handler).search("  discovery  ", limit=5)

        assert handler.requests[0].url.params["term"] == "discovery"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("term", ["", "   ", "\t\n"])
    async def test_empty_term_rejected_before_network(self, term):
        handler = RecordingHandler(lambda request: httpx.Response(200, content=PAYLOAD))
        provider = FakeTokenProvider()

        with pytest.raises(EmptySearchTermError):
            await _client(handler, provider).search(term, limit=10)

        assert handler.requests == []
        assert provider.calls == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, -1, 26])
    async def test_limit_out_of_range(self, limit):
        handler = RecordingHandler(lambda request: httpx.Response(200, content=PAYLOAD))

        with pytest.raises(SearchError):
            await _client(handler).search("x", limit=limit)

        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_subset_of_types(self):
        handler = RecordingHandler(
            lambda request: httpx.Response(
                200, content=search_payload(albums=[make_record("a1", "albums")])
            )
        )

        items = await _client(handler).search("x", limit=25, types=[ResourceType.ALBUMS])

        assert handler.requests[0].url.params["types"] == "albums"
        assert [i.id for i in items] == ["a1"]

    @pytest.mark.asyncio
    async def test_fetch_reports_elapsed(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, content=PAYLOAD))

        items, elapsed_ms = await _client(handler).fetch("x", limit=10)

        assert len(items) == 4
        assert elapsed_ms >= 0

    @pytest.mark.asyncio
    async def test_credential_error_propagates(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, content=PAYLOAD))
        provider = FakeTokenProvider(
            error=CredentialError(CredentialFailureReason.PERMISSION_DENIED)
        )

        with pytest.raises(CredentialError):
            await _client(handler, provider).search("x", limit=10)

        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_api_error_propagates(self):
        handler = RecordingHandler(lambda request: httpx.Response(401, text="Unauthorized"))

        with pytest.raises(ApiError) as exc_info:
            await _client(handler).search("x", limit=10)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_decode_error_propagates(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(DecodeError):
            await _client(handler).search("x", limit=10)

    @pytest.mark.asyncio
    async def test_supplied_credential_skips_cache(self):
        handler = RecordingHandler(lambda request: httpx.Response(200, content=PAYLOAD))
        provider = FakeTokenProvider()

        await _client(handler, provider).fetch(
            "x", limit=10, credential=make_credential(token="caller-token")
        )

        assert provider.calls == 0
        assert handler.requests[0].headers["Authorization"] == "Bearer caller-token"
