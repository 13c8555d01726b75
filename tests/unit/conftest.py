"""Unit test fixtures."""

from collections.abc import Callable
from contextlib import contextmanager
from unittest.mock import Mock

import httpx
import pytest

from catalog.ratelimit import reset_throttles
from catalog.storefront import ConfiguredStorefront
from catalog.transport import CatalogTransport
from config.settings import Settings


@contextmanager
def override_deps(app, overrides):
    """Set FastAPI dependency overrides and clear them on exit.

    Args:
        app: The FastAPI application.
        overrides: A dict mapping dependency functions to their replacement values.
    """

    def _make_override(val):
        return lambda: val

    for dep_fn, provider in overrides.items():
        app.dependency_overrides[dep_fn] = _make_override(provider)
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays a response."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


def make_transport(handler, storefront=None) -> CatalogTransport:
    """Build a CatalogTransport whose HTTP client is backed by handler."""
    client = httpx.AsyncClient(
        base_url="https://api.music.apple.com",
        transport=httpx.MockTransport(handler),
    )
    return CatalogTransport(storefront or ConfiguredStorefront("us"), client=client)


@pytest.fixture
def mock_settings(monkeypatch):
    """Settings with safe test defaults (no real tokens/DSNs)."""
    monkeypatch.setenv("CATALOG_DEVELOPER_TOKEN", "")
    monkeypatch.setenv("CATALOG_TOKEN_URL", "")
    monkeypatch.setenv("SENTRY_DSN", "")
    monkeypatch.setenv("POSTHOG_API_KEY", "")
    monkeypatch.setenv("ENABLE_TELEMETRY", "false")
    return Settings(
        catalog_developer_token="dev-token",
        catalog_token_url=None,
        sentry_dsn=None,
        posthog_api_key=None,
        enable_telemetry=False,
    )


@pytest.fixture
def mock_posthog_client():
    """Mock PostHog client."""
    client = Mock()
    client.capture = Mock()
    client.flush = Mock()
    client.shutdown = Mock()
    return client


@pytest.fixture(autouse=True)
def reset_state():
    """Clear throttles and the catalog stats ContextVar between tests."""
    from core.telemetry import _catalog_stats_var

    stats_token = _catalog_stats_var.set(None)
    yield
    reset_throttles()
    _catalog_stats_var.reset(stats_token)
