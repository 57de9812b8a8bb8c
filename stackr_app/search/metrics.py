"""Search performance counters (response times, cache hits, source failures)."""

import threading
from collections import Counter
from typing import Any, Dict


class SearchMetrics:
    """In-process counters for the aggregator; reset on restart."""

    TOP_QUERIES = 10

    def __init__(self):
        self._lock = threading.Lock()
        self.searches = 0
        self.total_response_ms = 0
        self.cache_hits = 0
        self.cache_misses = 0
        self.source_failures: Counter = Counter()
        self.popular_queries: Counter = Counter()

    def record_search(self, query: str, response_ms: int, cache_hit: bool = False) -> None:
        with self._lock:
            self.searches += 1
            self.total_response_ms += response_ms
            if cache_hit:
                self.cache_hits += 1
            else:
                self.cache_misses += 1
            self.popular_queries[query.strip().lower()] += 1

    def record_source_failure(self, source_id: str) -> None:
        with self._lock:
            self.source_failures[source_id] += 1

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            cache_total = self.cache_hits + self.cache_misses
            return {
                'searches': self.searches,
                'avg_response_ms': round(self.total_response_ms / self.searches, 1) if self.searches else 0.0,
                'cache_hits': self.cache_hits,
                'cache_misses': self.cache_misses,
                'cache_hit_rate': round(self.cache_hits / cache_total, 2) if cache_total else 0.0,
                'source_failures': dict(self.source_failures),
                'popular_queries': self.popular_queries.most_common(self.TOP_QUERIES),
            }
