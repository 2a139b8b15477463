"""
Memory Cache

In-process TTL cache for parsed feed pages, shared by the request threads of
the proxy endpoint.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class MemoryCache:
    """Thread-safe TTL cache with a size cap (oldest entries evicted first)."""

    def __init__(
        self,
        ttl: float = 300.0,
        max_size: int = 256,
        clock: Callable[[], float] = time.time
    ) -> None:
        """
        Initialize memory cache.

        Args:
            ttl: Seconds an entry stays fresh; 0 disables caching
            max_size: Maximum number of entries
            clock: Time source (seconds)
        """
        self.logger = logging.getLogger(__name__)
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock
        self.hits = 0
        self.misses = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[Any]:
        """
        Get a fresh value.

        Returns:
            Cached value, or None if missing or expired
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            stored_at, value = entry
            if now - stored_at > self._ttl:
                del self._entries[key]
                self.misses += 1
                return None

            self.hits += 1
            return value

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, evicting the oldest entries over the cap."""
        if self._ttl <= 0 or self._max_size <= 0:
            return

        with self._lock:
            self._entries[key] = (self._clock(), value)
            excess = len(self._entries) - self._max_size
            if excess > 0:
                oldest = sorted(self._entries.items(), key=lambda item: item[1][0])[:excess]
                for old_key, _ in oldest:
                    del self._entries[old_key]
                self.logger.debug("Memory cache evicted %d entries (size %d)", excess, len(self._entries))

    def clear(self, key: Optional[str] = None) -> None:
        """
        Clear one entry or all entries.

        Args:
            key: Specific key to clear, or None to clear all
        """
        with self._lock:
            if key:
                self._entries.pop(key, None)
            else:
                self._entries.clear()

    def cleanup(self) -> int:
        """
        Drop expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at > self._ttl]
            for key in expired:
                del self._entries[key]

        if expired:
            self.logger.debug("Memory cache cleanup: removed %d expired entries", len(expired))
        return len(expired)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        with self._lock:
            return {
                'size': len(self._entries),
                'max_size': self._max_size,
                'ttl': self._ttl,
                'hits': self.hits,
                'misses': self.misses,
            }
