"""Tests for the clock-injected caches."""
from swisscoin.utils.timed_cache import KeyedTimedCache, TimedValue


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_value_valid_until_ttl():
    clock = FakeClock()
    cached = TimedValue(60, clock=clock)
    assert cached.get() is None

    cached.set(["match"])
    clock.now += 59
    assert cached.is_valid
    assert cached.get() == ["match"]

    clock.now += 1
    assert not cached.is_valid
    assert cached.get() is None


def test_invalidate_is_explicit():
    cached = TimedValue(60, clock=FakeClock())
    cached.set("value")
    cached.invalidate()
    assert cached.get() is None


def test_keyed_cache():
    clock = FakeClock()
    cache = KeyedTimedCache(10, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    clock.now += 10
    assert cache.get("b") is None

    cache.set("b", 3)
    assert cache.get("b") == 3
    cache.clear()
    assert cache.get("b") is None


def test_keyed_cache_drops_expired_keys():
    clock = FakeClock()
    cache = KeyedTimedCache(10, clock=clock)
    cache.set("old", 1)
    clock.now += 5
    cache.set("fresh", 2)
    assert len(cache) == 2

    clock.now += 5
    assert cache.get("fresh") == 2
    assert len(cache) == 1
    assert "old" not in cache._entries

    clock.now += 5
    cache.set("new", 3)
    assert len(cache) == 1
    assert cache.get("new") == 3
