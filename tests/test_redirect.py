"""Tests for the redirect service."""

from datetime import timedelta

import pytest
from shortlink.database.memory import InMemoryCache, InMemoryURLStore
from shortlink.database.models import CachedURL, URLMapping
from shortlink.errors import Expired, NotApplicable, NotFound, StoreError
from shortlink.service import RedirectService


async def seed(store, code, long_url, expires_at=None):
    """Insert straight into the store, bypassing the services and the call log."""
    return await InMemoryURLStore.insert(store, URLMapping(code=code, long_url=long_url, expires_at=expires_at))


class TestRedirectService:
    """Test short code resolution."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["", "favicon.ico", "robots.txt", "a.b"])
    async def test_not_applicable(self, redirect_service, store, cache, code):
        with pytest.raises(NotApplicable):
            await redirect_service.resolve(code)

        assert store.calls == []
        assert cache.calls == []

    @pytest.mark.asyncio
    async def test_not_found(self, redirect_service, store, cache):
        with pytest.raises(NotFound) as exc_info:
            await redirect_service.resolve("nonexistent")

        assert exc_info.value.code == "nonexistent"
        assert store.ops("find_by_code") == [("find_by_code", "nonexistent")]
        assert cache.ops("set") == []

    @pytest.mark.asyncio
    async def test_miss_populates_cache(self, redirect_service, store, cache):
        await seed(store, "abc1234", "https://example.com")

        first = await redirect_service.resolve("abc1234")
        second = await redirect_service.resolve("abc1234")

        assert first.long_url == second.long_url == "https://example.com"
        assert first.source == "store"
        assert second.source == "cache"
        assert len(store.ops("find_by_code")) == 1
        assert cache.ops("set") == [("set", "url:abc1234", CachedURL("https://example.com").dumps(), None)]

    @pytest.mark.asyncio
    async def test_populate_uses_remaining_ttl(self, redirect_service, store, cache, clock):
        await seed(store, "abc1234", "https://example.com", clock.now() + timedelta(seconds=30, milliseconds=1))

        await redirect_service.resolve("abc1234")

        assert cache.ops("set")[0][3] == 31

    @pytest.mark.asyncio
    async def test_cached_entry_expired(self, redirect_service, store, cache, clock):
        stale = CachedURL("https://example.com", clock.now() - timedelta(seconds=1))
        await InMemoryCache.set(cache, "url:abc1234", stale.dumps())

        with pytest.raises(Expired):
            await redirect_service.resolve("abc1234")

        assert cache.ops("delete") == [("delete", "url:abc1234")]
        assert "url:abc1234" not in cache
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_store_entry_expired(self, redirect_service, store, cache, clock):
        await seed(store, "abc1234", "https://example.com", clock.now())

        with pytest.raises(Expired) as exc_info:
            await redirect_service.resolve("abc1234")

        assert exc_info.value.code == "abc1234"
        assert cache.ops("set") == []

    @pytest.mark.asyncio
    async def test_undecodable_cache_entry_falls_back(self, redirect_service, store, cache):
        await seed(store, "abc1234", "https://example.com")
        await InMemoryCache.set(cache, "url:abc1234", "{not json")

        resolution = await redirect_service.resolve("abc1234")

        assert resolution.source == "store"
        assert CachedURL.loads(await InMemoryCache.get(cache, "url:abc1234")).long_url == "https://example.com"

    @pytest.mark.asyncio
    async def test_cache_error_falls_back(self, redirect_service, store, cache):
        await seed(store, "abc1234", "https://example.com")
        cache.fail_ops = {"get", "set"}

        resolution = await redirect_service.resolve("abc1234")

        assert resolution.long_url == "https://example.com"
        assert resolution.source == "store"

    @pytest.mark.asyncio
    async def test_cache_timeout_falls_back(self, store, cache, clock):
        await seed(store, "abc1234", "https://example.com")
        cache.stall_ops = {"get"}
        redirect_service = RedirectService(store, cache, clock=clock, cache_timeout=0.01)

        resolution = await redirect_service.resolve("abc1234")

        assert resolution.source == "store"

    @pytest.mark.asyncio
    async def test_works_without_cache(self, store, clock):
        await seed(store, "abc1234", "https://example.com")

        resolution = await RedirectService(store, None, clock=clock).resolve("abc1234")

        assert resolution.long_url == "https://example.com"

    @pytest.mark.asyncio
    async def test_store_failure(self, redirect_service, store):
        store.fail = True

        with pytest.raises(StoreError):
            await redirect_service.resolve("abc1234")

    @pytest.mark.asyncio
    async def test_cache_hit_survives_store_outage(self, redirect_service, store):
        await seed(store, "abc1234", "https://example.com")
        await redirect_service.resolve("abc1234")
        store.fail = True

        resolution = await redirect_service.resolve("abc1234")

        assert resolution.source == "cache"


class TestCreateThenResolve:
    """End-to-end through the facade."""

    @pytest.mark.asyncio
    async def test_create_then_resolve(self, service, store, sample_urls):
        result = await service.create(sample_urls[0])
        store.calls.clear()

        resolution = await service.resolve(result.code)

        assert resolution.long_url == sample_urls[0]
        assert resolution.source == "cache"
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_alias_expires(self, service, clock):
        await service.create("https://example.com/soon", custom_alias="soon", expiry=clock.now() + timedelta(seconds=2))

        assert (await service.resolve("soon")).long_url == "https://example.com/soon"

        clock.advance(3)

        with pytest.raises(Expired):
            await service.resolve("soon")

    @pytest.mark.asyncio
    async def test_repointed_alias_is_not_served_stale(self, service, clock):
        await service.create("https://example.com/a", custom_alias="mylink")
        await service.create("https://example.com/a", custom_alias="mylink", expiry=clock.now() + timedelta(hours=1))

        resolution = await service.resolve("mylink")

        assert resolution.expires_at == clock.now() + timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_health_check(self, service):
        """Test health check."""
        health = await service.health_check()

        assert health == {"database": True, "cache": True, "overall": True}
