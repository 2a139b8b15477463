"""In-process caches."""

from coverwall.cache.memory_cache import MemoryCache

__all__ = ["MemoryCache"]
