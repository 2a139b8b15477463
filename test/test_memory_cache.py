"""
Tests for the in-process page cache.
"""

import pytest

from coverwall.cache.memory_cache import MemoryCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestMemoryCache:
    """Test TTL and size-capped caching."""

    def test_set_and_get(self, clock):
        cache = MemoryCache(ttl=60, clock=clock)
        cache.set('a', {'page': 1})
        assert cache.get('a') == {'page': 1}

    def test_expired_entries_are_misses(self, clock):
        cache = MemoryCache(ttl=60, clock=clock)
        cache.set('a', 1)

        clock.now += 61

        assert cache.get('a') is None
        assert cache.size() == 0

    def test_oldest_evicted_over_cap(self, clock):
        cache = MemoryCache(ttl=60, max_size=2, clock=clock)
        for index, key in enumerate(['a', 'b', 'c']):
            clock.now += 1
            cache.set(key, index)

        assert cache.get('a') is None
        assert cache.get('b') == 1
        assert cache.get('c') == 2

    def test_zero_ttl_disables_caching(self, clock):
        cache = MemoryCache(ttl=0, clock=clock)
        cache.set('a', 1)
        assert cache.size() == 0

    def test_cleanup_removes_expired_only(self, clock):
        cache = MemoryCache(ttl=10, clock=clock)
        cache.set('old', 1)
        clock.now += 8
        cache.set('new', 2)
        clock.now += 5

        assert cache.cleanup() == 1
        assert cache.get('new') == 2

    def test_clear(self, clock):
        cache = MemoryCache(clock=clock)
        cache.set('a', 1)
        cache.set('b', 2)

        cache.clear('a')
        assert cache.size() == 1
        cache.clear()
        assert cache.size() == 0

    def test_stats(self, clock):
        cache = MemoryCache(ttl=30, max_size=5, clock=clock)
        cache.set('a', 1)
        cache.get('a')
        cache.get('missing')

        stats = cache.get_stats()

        assert stats == {'size': 1, 'max_size': 5, 'ttl': 30, 'hits': 1, 'misses': 1}
