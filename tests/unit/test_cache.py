import asyncio

import pytest

from remote_views.cache.freshness import FreshnessDirectives
from remote_views.cache.store import TemplateCache
from remote_views.error.exceptions import FetchError


class CountingLoader:
    """Loader returning numbered values, optionally with directives or failures."""

    def __init__(self, directives=None):
        self.calls = 0
        self.directives = directives
        self.error = None

    async def __call__(self, key):
        self.calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return f"{key}#{self.calls}", self.directives


@pytest.mark.asyncio
async def test_fresh_window_serves_cached_value(clock):
    """An entry fetched at t is fresh for [t, t + max_age)."""
    cache = TemplateCache(max_age=10, clock=clock)
    loader = CountingLoader()

    assert await cache.read_through("a", loader) == "a#1"
    clock.advance(9.9)
    assert await cache.read_through("a", loader) == "a#1"
    assert loader.calls == 1
    assert cache.stats.hits == 1


@pytest.mark.asyncio
async def test_expired_entry_without_stale_window_is_refetched(clock):
    cache = TemplateCache(max_age=10, clock=clock)
    loader = CountingLoader()

    await cache.read_through("a", loader)
    clock.advance(10)
    assert cache.get("a") is None
    assert await cache.read_through("a", loader) == "a#2"
    assert loader.calls == 2


@pytest.mark.asyncio
async def test_stale_entry_is_served_while_refreshing(clock):
    """Within [t + a, t + a + s) the stale value is returned and refreshed in the background."""
    cache = TemplateCache(max_age=10, stale_while_revalidate=5, clock=clock)
    loader = CountingLoader()

    await cache.read_through("a", loader)
    clock.advance(12)
    assert cache.is_stale("a")

    assert await cache.read_through("a", loader) == "a#1"
    assert cache.stats.stale_hits == 1
    await cache.join_refreshes()

    assert loader.calls == 2
    assert not cache.is_stale("a")
    assert await cache.read_through("a", loader) == "a#2"


@pytest.mark.asyncio
async def test_stale_window_end_forces_fetch(clock):
    cache = TemplateCache(max_age=10, stale_while_revalidate=5, clock=clock)
    loader = CountingLoader()

    await cache.read_through("a", loader)
    clock.advance(15)
    assert not cache.is_stale("a")
    assert cache.get("a") is None
    assert await cache.read_through("a", loader) == "a#2"


@pytest.mark.asyncio
async def test_failed_background_refresh_keeps_serving_stale_value(clock):
    cache = TemplateCache(max_age=10, stale_while_revalidate=5, clock=clock)
    loader = CountingLoader()

    await cache.read_through("a", loader)
    clock.advance(11)
    loader.error = FetchError("boom")

    assert await cache.read_through("a", loader) == "a#1"
    await cache.join_refreshes()
    assert cache.stats.refresh_failures == 1
    assert cache.is_stale("a")
    assert await cache.read_through("a", loader) == "a#1"
    await cache.join_refreshes()
    assert cache.stats.refresh_failures == 2


@pytest.mark.asyncio
async def test_only_one_background_refresh_per_key(clock):
    cache = TemplateCache(max_age=10, stale_while_revalidate=5, clock=clock)
    loader = CountingLoader()

    await cache.read_through("a", loader)
    clock.advance(11)
    await asyncio.gather(cache.read_through("a", loader), cache.read_through("a", loader))
    await cache.join_refreshes()
    assert loader.calls == 2


@pytest.mark.asyncio
async def test_load_failure_is_raised_and_not_cached(clock):
    cache = TemplateCache(max_age=10, clock=clock)
    loader = CountingLoader()
    loader.error = FetchError("HTTP status code '500' received")

    with pytest.raises(FetchError):
        await cache.read_through("a", loader)
    assert "a" not in cache

    loader.error = None
    assert await cache.read_through("a", loader) == "a#2"


@pytest.mark.asyncio
async def test_no_store_directives_are_never_served_from_cache(clock):
    cache = TemplateCache(max_age=3600, clock=clock)
    loader = CountingLoader(FreshnessDirectives(no_store=True, no_cache=True))

    await cache.read_through("a", loader)
    await cache.read_through("a", loader)
    assert loader.calls == 2
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_directives_override_defaults_for_one_entry_only(clock):
    cache = TemplateCache(max_age=60, clock=clock)
    short = CountingLoader(FreshnessDirectives(max_age=1, stale_while_revalidate=1))
    default = CountingLoader()

    await cache.read_through("short", short)
    await cache.read_through("default", default)
    entry = cache.get("short")
    assert entry.expires_at - entry.created_at == 1
    assert entry.stale_until - entry.created_at == 2

    clock.advance(3)
    assert cache.get("short") is None
    assert cache.get("default") is not None


def test_set_with_forbidding_directives_drops_existing_entry(clock):
    cache = TemplateCache(max_age=60, clock=clock)
    cache.set("a", "old")
    assert cache.set("a", "new", FreshnessDirectives(no_cache=True)) is None
    assert cache.get("a") is None


def test_least_recently_used_entry_is_evicted(clock):
    cache = TemplateCache(max_size=2, max_age=60, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert cache.keys() == ["a", "c"]
    assert cache.stats.evictions == 1


def test_replacing_existing_key_does_not_evict(clock):
    cache = TemplateCache(max_size=2, max_age=60, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 3)
    assert sorted(cache.keys()) == ["a", "b"]
    assert cache.get("a").value == 3


def test_invalid_max_size_is_rejected():
    with pytest.raises(ValueError):
        TemplateCache(max_size=0)


def test_forever_cache_never_expires_or_goes_stale(clock):
    cache = TemplateCache.forever(clock=clock)
    cache.set("view", "template")
    clock.advance(10 ** 9)
    assert cache.get("view").value == "template"
    assert not cache.is_stale("view")


def test_delete_and_clear(clock):
    cache = TemplateCache(clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.delete("a")
    assert not cache.delete("a")
    cache.clear()
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_load(clock):
    cache = TemplateCache(clock=clock)
    loader = CountingLoader()

    results = await asyncio.gather(*(cache.read_through("a", loader) for _ in range(5)))
    assert results == ["a#1"] * 5
    assert loader.calls == 1


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_failure(clock):
    cache = TemplateCache(clock=clock)
    loader = CountingLoader()
    loader.error = FetchError("down")

    results = await asyncio.gather(
        cache.read_through("a", loader),
        cache.read_through("a", loader),
        return_exceptions=True
    )
    assert all(isinstance(result, FetchError) for result in results)
    assert loader.calls == 1
    assert "a" not in cache


@pytest.mark.asyncio
async def test_single_flight_can_be_disabled(clock):
    cache = TemplateCache(clock=clock, single_flight=False)
    loader = CountingLoader()

    await asyncio.gather(*(cache.read_through("a", loader) for _ in range(3)))
    assert loader.calls == 3
