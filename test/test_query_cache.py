import pytest

from jeevanam.infrastructure.query_cache import QueryCache


def test_prefix_invalidation():
    cache = QueryCache()
    cache.set(("recipes",), ["a"])
    cache.set(("recipes", "category", "Soup"), ["b"])
    cache.set(("raw_materials",), ["c"])

    assert cache.invalidate(("recipes",)) == 2
    assert ("recipes",) not in cache
    assert ("raw_materials",) in cache


def test_ttl_expiry(monkeypatch):
    now = {"t": 1000.0}
    monkeypatch.setattr("jeevanam.infrastructure.query_cache.time.time", lambda: now["t"])
    cache = QueryCache(ttl_s=5)
    cache.set(("categories",), ["Lunch"])
    now["t"] += 4
    assert cache.get(("categories",)) == ["Lunch"]
    now["t"] += 2
    assert cache.get(("categories",)) is None


def test_full_cache_drops_oldest():
    cache = QueryCache(max_items=3)
    for i in range(4):
        cache.set(("k", i), i)
    assert len(cache) == 3
    assert ("k", 3) in cache


@pytest.mark.anyio
async def test_get_or_fetch_reuses_the_stored_result():
    cache = QueryCache()
    calls = []

    async def fetch():
        calls.append(1)
        return ["Rice"]

    assert await cache.get_or_fetch(("raw_materials",), fetch) == ["Rice"]
    assert await cache.get_or_fetch(("raw_materials",), fetch) == ["Rice"]
    assert len(calls) == 1


@pytest.mark.anyio
async def test_invalidation_during_fetch_is_not_overwritten():
    cache = QueryCache()

    async def slow_fetch():
        # a recovery lands while the request is in flight
        cache.invalidate_all()
        return ["stale"]

    assert await cache.get_or_fetch(("recipes",), slow_fetch) == ["stale"]
    assert ("recipes",) not in cache
