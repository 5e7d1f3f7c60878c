"""Unit tests for providers.cache."""

from signal_desk.providers.cache import NullCache, TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_get_or_set_caches_until_expiry():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    calls = []

    def producer():
        calls.append(1)
        return len(calls)

    assert cache.get_or_set("k", 60, producer) == 1
    clock.now = 59.0
    assert cache.get_or_set("k", 60, producer) == 1
    clock.now = 60.0
    assert cache.get_or_set("k", 60, producer) == 2
    assert len(calls) == 2


def test_none_is_not_cached():
    cache = TTLCache(clock=FakeClock())
    calls = []

    def producer():
        calls.append(1)
        return None

    cache.get_or_set("k", 60, producer)
    cache.get_or_set("k", 60, producer)
    assert len(calls) == 2
    assert len(cache) == 0


def test_max_entries_evicts():
    clock = FakeClock()
    cache = TTLCache(clock=clock, max_entries=2)
    cache.set("a", 1, 10)
    cache.set("b", 2, 20)
    cache.set("c", 3, 30)
    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("c") == 3


def test_clear():
    cache = TTLCache()
    cache.set("a", 1, 10)
    cache.clear()
    assert cache.get("a") is None


def test_null_cache_always_produces():
    cache = NullCache()
    calls = []
    cache.get_or_set("k", 60, lambda: calls.append(1))
    cache.get_or_set("k", 60, lambda: calls.append(1))
    assert len(calls) == 2
