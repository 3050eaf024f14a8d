"""
FlightLog Backend: Photo Resolver Unit Tests
=============================================

What we test:
    ✅ Failed photos are dropped, survivors keep input order
    ✅ Empty input makes no calls
    ✅ Fetches still running at the timeout are cancelled, not awaited
    ✅ A provider that raises only loses that one photo
"""

import asyncio

import pytest

from flightlog.services.photo_resolver import PhotoResolver


@pytest.fixture
def provider(fake_provider):
    provider = fake_provider
    provider.photos = {"r1": "https://cdn/1", "r2": None, "r3": "https://cdn/3"}
    return provider


class TestResolveAll:
    @pytest.mark.asyncio
    async def test_failed_photo_is_skipped_in_order(self, provider):
        resolver = PhotoResolver(provider)

        result = await resolver.resolve_all(["r1", "r2", "r3"])

        assert result == ["https://cdn/1", "https://cdn/3"]
        assert sorted(provider.photo_calls) == ["r1", "r2", "r3"]

    @pytest.mark.asyncio
    async def test_order_follows_input_not_completion(self, provider):
        provider.photo_delays = {"r1": 0.05}
        resolver = PhotoResolver(provider)

        assert await resolver.resolve_all(["r1", "r3"]) == ["https://cdn/1", "https://cdn/3"]

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_calls(self, provider):
        resolver = PhotoResolver(provider)

        assert await resolver.resolve_all([]) == []
        assert provider.photo_calls == []

    @pytest.mark.asyncio
    async def test_slow_fetch_is_abandoned_at_timeout(self, provider):
        provider.photo_delays = {"r3": 5.0}
        resolver = PhotoResolver(provider, timeout=0.1)

        loop = asyncio.get_running_loop()
        started = loop.time()
        result = await resolver.resolve_all(["r1", "r3"])

        assert result == ["https://cdn/1"]
        assert loop.time() - started < 2.0
        assert provider.cancelled_photos == ["r3"]

    @pytest.mark.asyncio
    async def test_call_timeout_overrides_default(self, provider):
        provider.photo_delays = {"r1": 5.0}
        resolver = PhotoResolver(provider, timeout=30.0)

        assert await resolver.resolve_all(["r1", "r3"], timeout=0.05) == ["https://cdn/3"]

    @pytest.mark.asyncio
    async def test_raising_provider_loses_one_photo(self, provider):
        original = provider.fetch_photo_asset

        async def flaky(ref):
            if ref == "r1":
                raise RuntimeError("boom")
            return await original(ref)

        provider.fetch_photo_asset = flaky
        resolver = PhotoResolver(provider)

        assert await resolver.resolve_all(["r1", "r3"]) == ["https://cdn/3"]
