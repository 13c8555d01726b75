"""Unit tests for catalog/ratelimit.py."""

import asyncio
from unittest.mock import patch

import pytest

from catalog.ratelimit import CatalogThrottle, _throttles, get_throttle, reset_throttles


class TestCatalogThrottle:
    @pytest.mark.asyncio
    async def test_caps_concurrency(self):
        throttle = CatalogThrottle(rate_per_minute=100, max_concurrent=1)

        async with throttle:
            assert throttle.saturated is True
            waiter = asyncio.create_task(throttle.__aenter__())
            await asyncio.sleep(0)
            assert not waiter.done()

        await waiter
        await throttle.__aexit__(None, None, None)
        assert throttle.saturated is False

    @pytest.mark.asyncio
    async def test_releases_slot_on_error(self):
        throttle = CatalogThrottle(rate_per_minute=100, max_concurrent=1)

        with pytest.raises(RuntimeError):
            async with throttle:
                raise RuntimeError("boom")

        assert not throttle.semaphore.locked()

    @pytest.mark.asyncio
    async def test_rate_budget_saturates(self):
        throttle = CatalogThrottle(rate_per_minute=1, max_concurrent=5)

        async with throttle:
            pass

        assert throttle.saturated is True


class TestGetThrottle:
    @pytest.mark.asyncio
    async def test_sized_from_settings(self, mock_settings):
        mock_settings.catalog_rate_limit = 42
        mock_settings.catalog_max_concurrent = 2
        with patch("catalog.ratelimit.get_settings", return_value=mock_settings):
            throttle = get_throttle()

        assert throttle.limiter.max_rate == 42
        assert throttle.limiter.time_period == 60

    @pytest.mark.asyncio
    async def test_cached_per_loop(self):
        assert get_throttle() is get_throttle()

    def test_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            get_throttle()

    @pytest.mark.asyncio
    async def test_reset_clears_state(self):
        get_throttle()
        assert _throttles

        reset_throttles()

        assert not _throttles
