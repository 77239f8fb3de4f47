"""Tests for the recommendation cache and its single-flight behaviour."""

import asyncio

import pytest

from homerecs.services.cache import CacheEntry, RecommendationCache
from homerecs.services.defaults import default_result


@pytest.fixture
def cache() -> RecommendationCache:
    return RecommendationCache(clock=lambda: 1_000)


# ── Entries ────────────────────────────────────────


def test_put_get_and_status(cache):
    assert cache.get(1) is None
    result = default_result(1)
    cache.put(1, result)

    assert cache.get(1) is result
    status = cache.status(1)
    assert status["has_cache"] is True
    assert status["timestamp"] == 1_000
    assert status["age"] == 0
    assert status["strategy"] == "fallback-defaults"
    assert status["list_lengths"] == {"te_podrian_gustar": 12, "descubri_nuevas_lecturas": 12}
    assert cache.status(2) == {"has_cache": False, "in_flight": False}


def test_status_does_not_consume_entry(cache):
    cache.put(1, default_result(1))
    cache.status(1)
    assert cache.get(1) is not None


def test_corrupt_entry_is_discarded(cache):
    cache._entries[1] = CacheEntry(data={"tePodrianGustar": []}, timestamp=0)
    assert cache.get(1) is None
    assert len(cache) == 0


def test_invalidate_and_clear(cache):
    cache.put(1, default_result(1))
    cache.put(2, default_result(2))

    assert cache.invalidate(1) is True
    assert cache.invalidate(1) is False
    assert cache.get(1) is None
    assert cache.clear() == 1
    assert cache.get(2) is None


def test_stale_generation_write_is_refused(cache):
    generation = cache.generation(1)
    cache.invalidate(1)
    assert cache.put(1, default_result(1), generation=generation) is False
    assert cache.get(1) is None
    assert cache.put(1, default_result(1), generation=cache.generation(1)) is True


# ── Single-flight ──────────────────────────────────


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_computation(cache):
    calls = []
    release = asyncio.Event()

    async def compute():
        calls.append(1)
        await release.wait()
        return default_result(1)

    first = asyncio.ensure_future(cache.coalesce(1, compute))
    second = asyncio.ensure_future(cache.coalesce(1, compute))
    await asyncio.sleep(0)
    assert cache.status(1)["in_flight"] is True

    release.set()
    a, b = await asyncio.gather(first, second)
    assert a is b
    assert calls == [1]
    assert cache.status(1)["in_flight"] is False


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_computation(cache):
    release = asyncio.Event()

    async def compute():
        await release.wait()
        return default_result(1)

    waiter = asyncio.ensure_future(cache.coalesce(1, compute))
    other = asyncio.ensure_future(cache.coalesce(1, compute))
    await asyncio.sleep(0)
    waiter.cancel()
    release.set()

    result = await other
    assert len(result.te_podrian_gustar) == 12


@pytest.mark.asyncio
async def test_miss_after_invalidation_starts_a_new_computation(cache):
    calls = []
    release = asyncio.Event()

    async def compute():
        calls.append(1)
        await release.wait()
        return default_result(1)

    stale = asyncio.ensure_future(cache.coalesce(1, compute))
    await asyncio.sleep(0)
    cache.invalidate(1)
    assert cache.status(1)["in_flight"] is False

    fresh = asyncio.ensure_future(cache.coalesce(1, compute))
    await asyncio.sleep(0)
    release.set()
    a, b = await asyncio.gather(stale, fresh)

    assert a is not b
    assert len(calls) == 2
