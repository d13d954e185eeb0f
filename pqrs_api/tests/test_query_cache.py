import threading

import pytest

from pqrs_api.utils.query_cache import MemoryQueryCache, cache_key


def test_entry_expires_on_read():
    cache = MemoryQueryCache()
    cache.put("k", {"v": 1}, ttl=300, now=1000.0)

    assert cache.get("k", now=1299.9) == {"v": 1}
    assert cache.get("k", now=1300.0) is None
    assert len(cache) == 0


def test_put_overwrites_and_resets_ttl():
    cache = MemoryQueryCache()
    cache.put("k", "old", ttl=10, now=0.0)
    cache.put("k", "new", ttl=10, now=8.0)

    assert cache.get("k", now=15.0) == "new"


def test_purge_expired():
    cache = MemoryQueryCache()
    cache.put("a", 1, ttl=5, now=0.0)
    cache.put("b", 2, ttl=50, now=0.0)

    assert cache.purge_expired(now=10.0) == 1
    assert cache.snapshot() == {"b": 50.0}


def test_capacity_evicts_least_recently_used():
    cache = MemoryQueryCache(capacity=2)
    cache.put("a", 1, ttl=60, now=0.0)
    cache.put("b", 2, ttl=60, now=0.0)
    cache.get("a", now=1.0)
    cache.put("c", 3, ttl=60, now=2.0)

    assert cache.get("b", now=3.0) is None
    assert cache.get("a", now=3.0) == 1
    assert cache.get("c", now=3.0) == 3


def test_clear():
    cache = MemoryQueryCache()
    cache.put("a", 1, ttl=60)
    cache.clear()
    assert cache.get("a") is None


def test_invalid_capacity():
    with pytest.raises(ValueError):
        MemoryQueryCache(capacity=0)


def test_cache_key_ignores_param_order():
    assert cache_key({"b": "2", "a": "1"}) == cache_key({"a": "1", "b": "2"})
    assert cache_key({"a": "1"}) != cache_key({"a": "2"})


def test_concurrent_readers_and_writers():
    cache = MemoryQueryCache(capacity=16)
    errors = []
    keys = [f"k{i}" for i in range(64)]

    def writer():
        try:
            for _ in range(200):
                for k in keys:
                    cache.put(k, k, ttl=0.0001)
        except Exception as exc:
            errors.append(repr(exc))

    def reader():
        try:
            for _ in range(200):
                for k in keys:
                    cache.get(k)
                cache.purge_expired()
                cache.snapshot()
        except Exception as exc:
            errors.append(repr(exc))

    threads = [threading.Thread(target=writer) for _ in range(2)]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(cache) <= 16
