"""
Cache layer for aggregated search results.

Design:
  - In-memory OrderedDict (no external dependencies)
  - Strict TTL, checked on read and by evict_expired()
  - LRU eviction once max_size entries are held
  - Lock-protected so Flask worker threads can share one instance
  - Injected into the aggregator rather than living in a module global

Usage:
    cache = SearchCache(ttl=1800, max_size=1000)

    key = cache.make_key("dune", ["book"], options.cache_key_parts())
    cache.set(key, aggregated)
    cached = cache.get(key)

    stats = cache.stats()
"""

import time
import hashlib
import threading
from typing import Any, Callable, Dict, Iterable, Optional
from collections import OrderedDict


class SearchCache:
    """Thread-safe in-memory TTL + LRU cache."""

    def __init__(
        self,
        ttl: float = 1800,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize cache.

        Args:
            ttl: Time-to-live in seconds (default: 30 minutes)
            max_size: Maximum cache entries (default: 1000)
            clock: Time source, injectable for tests
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._cache: OrderedDict = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @staticmethod
    def make_key(query: str, categories: Iterable[str], parts: Iterable[Any] = ()) -> str:
        """
        Generate cache key from query, categories and option values.

        Returns:
            SHA-256 of lower-cased query (whitespace collapsed, punctuation kept)
            + sorted categories + options
        """
        categories_str = ','.join(sorted(categories)) if categories else 'all'
        parts_str = '|'.join(repr(part) for part in parts)
        query_str = ' '.join(query.lower().split())
        data = f"{query_str}:{categories_str}:{parts_str}"
        return hashlib.sha256(data.encode()).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None if missing or expired."""
        with self._lock:
            if key not in self._cache:
                self._misses += 1
                return None

            entry = self._cache[key]

            # Check expiration
            if self._clock() - entry['timestamp'] > self.ttl:
                del self._cache[key]
                self._misses += 1
                return None

            # Move to end (LRU)
            self._cache.move_to_end(key)
            self._hits += 1

            return entry['data']

    def set(self, key: str, data: Any) -> None:
        """Store a value, evicting the least recently used entry at capacity."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            elif len(self._cache) >= self.max_size:
                self._cache.popitem(last=False)
                self._evictions += 1

            self._cache[key] = {
                'data': data,
                'timestamp': self._clock()
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self) -> None:
        """Clear all cache entries and reset statistics."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with size, max_size, ttl, hits, misses, evictions, hit_rate (%)
        """
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                'size': len(self._cache),
                'max_size': self.max_size,
                'ttl': self.ttl,
                'hits': self._hits,
                'misses': self._misses,
                'evictions': self._evictions,
                'hit_rate': round(hit_rate, 2)
            }

    def evict_expired(self) -> int:
        """
        Manually evict all expired entries.

        Returns:
            Number of entries evicted
        """
        now = self._clock()

        with self._lock:
            expired_keys = [
                key for key, entry in self._cache.items()
                if now - entry['timestamp'] > self.ttl
            ]
            for key in expired_keys:
                del self._cache[key]

        return len(expired_keys)
