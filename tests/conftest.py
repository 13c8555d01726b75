"""Shared test fixtures for pytest."""

from unittest.mock import AsyncMock

import pytest

from catalog.models import ResourceType
from tests.factories import make_search_item


class FakeTokenProvider:
    """Deterministic provider that counts how many tokens it issued."""

    def __init__(self, error: Exception | None = None):
        self.calls = 0
        self.error = error

    async def developer_token(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return f"token-{self.calls}"


class FakeStorefront:
    """Storefront provider returning a fixed code or raising."""

    def __init__(self, code: str = "us", error: Exception | None = None):
        self.code = code
        self.error = error
        self.calls = 0

    async def storefront(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.code


class FakeClock:
    """Manually advanced clock in epoch seconds."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def token_provider():
    return FakeTokenProvider()


@pytest.fixture
def storefront():
    return FakeStorefront()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_catalog_client():
    """Create a mock catalog client."""
    client = AsyncMock()
    client.search = AsyncMock()
    client.reverse_lookup = AsyncMock()
    client.check_api = AsyncMock(return_value=True)
    client.transport.storefront_provider.storefront = AsyncMock(return_value="us")
    return client


@pytest.fixture
def mixed_search_items():
    """Three albums and two songs, as a keyword search would return them."""
    return [
        make_search_item("a1", ResourceType.ALBUMS),
        make_search_item("a2", ResourceType.ALBUMS),
        make_search_item("a3", ResourceType.ALBUMS),
        make_search_item("s1", ResourceType.SONGS),
        make_search_item("s2", ResourceType.SONGS),
    ]
