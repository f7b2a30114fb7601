import threading

import pytest

from property_intel.cache import GeoCache


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_lookup_after_store_is_idempotent():
    cache = GeoCache(clock=FakeClock())
    cache.store(-33.9, 18.4, {"t": 21})
    assert cache.lookup(-33.9, 18.4) == ({"t": 21}, True)
    assert cache.lookup(-33.9, 18.4) == ({"t": 21}, True)
    assert cache.stats()["hits"] == 2


def test_proximity_within_and_beyond_epsilon():
    cache = GeoCache(clock=FakeClock())
    cache.store(-33.9, 18.4, "cape town")
    assert cache.lookup(-33.9 + 0.001, 18.4) == ("cape town", True)
    assert cache.lookup(-33.9 + 1.0, 18.4) == (None, False)


def test_ttl_expiry_is_a_miss_and_evicts():
    clock = FakeClock()
    cache = GeoCache(ttl=60, clock=clock)
    cache.store(1.0, 1.0, "x")
    clock.now += 59
    assert cache.lookup(1.0, 1.0) == ("x", True)
    clock.now += 2
    assert cache.lookup(1.0, 1.0) == (None, False)
    assert len(cache) == 0
    stats = cache.stats()
    assert stats["expired"] == 1
    assert stats["misses"] == 1


def test_store_within_epsilon_replaces():
    cache = GeoCache(clock=FakeClock())
    cache.store(10.0, 10.0, "old")
    cache.store(10.005, 10.0, "new")
    assert len(cache) == 1
    assert cache.lookup(10.0, 10.0) == ("new", True)


def test_oldest_entry_evicted_first():
    clock = FakeClock()
    cache = GeoCache(max_entries=3, clock=clock)
    for idx in range(3):
        cache.store(float(idx), 0.0, idx)
        clock.now += 1
    cache.store(50.0, 0.0, "newest")
    assert len(cache) == 3
    assert cache.lookup(0.0, 0.0) == (None, False)
    assert cache.lookup(1.0, 0.0) == (1, True)
    assert cache.lookup(50.0, 0.0) == ("newest", True)
    assert cache.stats()["evictions"] == 1


def test_nearest_entry_wins():
    cache = GeoCache(epsilon=0.01, clock=FakeClock())
    cache.store(0.0, 0.0, "a")
    cache.store(0.0, 0.015, "b")
    assert cache.lookup(0.0, 0.009) == ("b", True)


def test_clear_resets_entries_and_stats():
    cache = GeoCache(clock=FakeClock())
    cache.store(0.0, 0.0, "a")
    cache.lookup(0.0, 0.0)
    cache.clear()
    assert cache.stats() == {"hits": 0, "misses": 0, "evictions": 0, "expired": 0, "entries": 0}


def test_invalid_size_rejected():
    with pytest.raises(ValueError):
        GeoCache(max_entries=0)


def test_concurrent_store_and_lookup():
    cache = GeoCache(max_entries=20)
    errors = []

    def worker(offset):
        try:
            for idx in range(200):
                lat = (offset * 200 + idx) * 0.1 % 80
                cache.store(lat, 0.0, idx)
                cache.lookup(lat, 0.0)
        except Exception as exc:  # pragma: no cover
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert not errors
    assert len(cache) <= 20


def test_expired_nearest_entry_does_not_shadow_fresh_one():
    clock = FakeClock()
    cache = GeoCache(ttl=60, epsilon=0.01, clock=clock)
    cache.store(0.0, 0.0, "stale")
    clock.now += 50
    cache.store(0.0, 0.015, "fresh")
    clock.now += 20
    # (0, 0.006) is nearest to the expired entry, but both are within epsilon
    assert cache.lookup(0.0, 0.006) == ("fresh", True)
    assert len(cache) == 1
    assert cache.stats()["expired"] == 1
