"""
================================================================================
Stackr - Search Aggregator
================================================================================
Runs one query against every relevant source adapter and merges the answers.

Pipeline:
  1. Cache lookup (lower-cased query + categories + options)
  2. Fan-out: every adapter's fetch() concurrently, each branch bounded by
     the adapter's branch_timeout (else the aggregator default); failures
     become FanOutResult.failed entries
  3. Keep the requested categories only
  4. Rank: quality filter -> score + sort -> dedup -> diversity -> truncate
  5. Cache store (only when at least one source answered)

Usage:
    aggregator = SearchAggregator(adapters, cache=SearchCache())

    answer = await aggregator.search("dune", categories=[MediaCategory.BOOK])
    for result in answer.results:
        print(result.title, result.total_score)

    await aggregator.close()
================================================================================
"""

import time
import asyncio
import logging
from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..adapters.base import BaseSourceAdapter
from .cache import SearchCache
from .deduplicator import Deduplicator
from .matcher import TitleMatcher
from .metrics import SearchMetrics
from .models import (
    ALL_CATEGORIES,
    AdapterOutcome,
    AggregatedSearch,
    FanOutResult,
    MediaCategory,
    SearchOptions,
    SearchResult,
)
from .quality_filter import QualityFilter
from .scorer import RelevanceScorer

logger = logging.getLogger(__name__)


MIN_QUERY_LENGTH = 2

# Diversity pass: the head of the list holds at most N items per category
DIVERSITY_HEAD_SIZE = 12
DIVERSITY_PER_CATEGORY = 3


def diversify(results: List[SearchResult]) -> List[SearchResult]:
    """
    Interleave categories at the top of an already-sorted list.

    The first DIVERSITY_HEAD_SIZE slots take results in score order, skipping
    a category once it has DIVERSITY_PER_CATEGORY entries there. Everything
    skipped follows in its original order.
    """
    head: List[SearchResult] = []
    rest: List[SearchResult] = []
    per_category: Counter = Counter()

    for result in results:
        if len(head) < DIVERSITY_HEAD_SIZE and per_category[result.category] < DIVERSITY_PER_CATEGORY:
            head.append(result)
            per_category[result.category] += 1
        else:
            rest.append(result)

    return head + rest


class SearchAggregator:
    """
    Fan-out/fan-in search over a set of source adapters.

    Collaborators are injected; anything omitted gets its default
    implementation. The cache is optional (None disables caching).
    """

    def __init__(
        self,
        adapters: Iterable[BaseSourceAdapter],
        cache: Optional[SearchCache] = None,
        quality_filter: Optional[QualityFilter] = None,
        scorer: Optional[RelevanceScorer] = None,
        deduplicator: Optional[Deduplicator] = None,
        metrics: Optional[SearchMetrics] = None,
        matcher: Optional[TitleMatcher] = None,
        branch_timeout: float = 5.0,
        default_limit: int = 20
    ):
        self.adapters: Dict[str, BaseSourceAdapter] = {}
        for adapter in adapters:
            if adapter.id in self.adapters:
                raise ValueError(f"Duplicate adapter id '{adapter.id}'")
            self.adapters[adapter.id] = adapter

        self.cache = cache
        self.quality_filter = quality_filter or QualityFilter()
        self.scorer = scorer or RelevanceScorer()
        self.deduplicator = deduplicator or Deduplicator()
        self.metrics = metrics or SearchMetrics()
        self.matcher = matcher or TitleMatcher()
        self.branch_timeout = branch_timeout
        self.default_limit = default_limit

        logger.info(
            f"Search aggregator ready with {len(self.adapters)} adapters: "
            f"{', '.join(self.adapters.keys()) or 'none'}"
        )

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def search(
        self,
        query: str,
        categories: Optional[Sequence[MediaCategory]] = None,
        limit: Optional[int] = None,
        options: Optional[SearchOptions] = None,
        use_cache: bool = True
    ) -> AggregatedSearch:
        """
        Search all adapters serving the requested categories.

        Args:
            query: User query (at least MIN_QUERY_LENGTH characters)
            categories: Categories to include (None = all)
            limit: Overrides options.limit
            options: Language, market, sort mode, filters
            use_cache: Consult and populate the cache

        Returns:
            AggregatedSearch; all_failed tells "every source failed" apart
            from "no matches"
        """
        started = time.perf_counter()
        query = (query or '').strip()

        options = replace(options) if options else SearchOptions(limit=self.default_limit)
        if limit is not None:
            options.limit = limit

        if len(query) < MIN_QUERY_LENGTH:
            return AggregatedSearch(query=query)

        wanted = list(dict.fromkeys(categories)) if categories else list(ALL_CATEGORIES)

        cache_key = None
        if use_cache and self.cache is not None:
            cache_key = self.cache.make_key(
                query, [c.value for c in wanted], options.cache_key_parts()
            )
            cached = self.cache.get(cache_key)
            if cached is not None:
                elapsed_ms = self._elapsed_ms(started)
                self.metrics.record_search(query, elapsed_ms, cache_hit=True)
                logger.info(f"Cache hit for '{query}' ({len(cached.results)} results)")
                return replace(cached, elapsed_ms=elapsed_ms, from_cache=True)

        selected = self._adapters_for(wanted)
        if not selected:
            logger.warning(f"No adapters registered for {[c.value for c in wanted]}")

        fan_out = await self.fan_out(query, selected, options)

        results = [r for r in fan_out.results if r.category in wanted]
        ranked, total_count = self.rank(results, query, options)

        answer = AggregatedSearch(
            query=query,
            results=ranked,
            total_count=total_count,
            elapsed_ms=self._elapsed_ms(started),
            succeeded_sources=[o.source_id for o in fan_out.succeeded],
            failed_sources=[o.source_id for o in fan_out.failed],
        )

        if cache_key is not None and fan_out.succeeded:
            self.cache.set(cache_key, answer)

        self.metrics.record_search(query, answer.elapsed_ms, cache_hit=False)
        logger.info(
            f"Search '{query}': {len(ranked)}/{total_count} results from "
            f"{len(fan_out.succeeded)}/{len(selected)} sources in {answer.elapsed_ms}ms"
        )
        return answer

    async def fan_out(
        self,
        query: str,
        adapters: Sequence[BaseSourceAdapter],
        options: SearchOptions
    ) -> FanOutResult:
        """
        Call every adapter concurrently.

        Each branch is bounded by timeout_for(adapter). A raising or timed-out
        branch becomes a failed outcome and never affects the others.
        Results keep batch order (adapter order, then each adapter's order).
        """
        if not adapters:
            return FanOutResult()

        async def _run(adapter: BaseSourceAdapter) -> AdapterOutcome:
            branch_started = time.perf_counter()
            try:
                results = await asyncio.wait_for(
                    adapter.fetch(query, options), timeout=self.timeout_for(adapter)
                )
                return AdapterOutcome(
                    source_id=adapter.id,
                    results=list(results or []),
                    elapsed_ms=self._elapsed_ms(branch_started),
                )
            except asyncio.TimeoutError:
                error = f"timed out after {self.timeout_for(adapter)}s"
            except Exception as e:
                error = str(e) or e.__class__.__name__

            logger.error(f"Search failed for {adapter.id}: {error}")
            self.metrics.record_source_failure(adapter.id)
            return AdapterOutcome(
                source_id=adapter.id,
                error=error,
                elapsed_ms=self._elapsed_ms(branch_started),
            )

        outcomes = await asyncio.gather(*(_run(adapter) for adapter in adapters))

        fan_out = FanOutResult()
        for outcome in outcomes:
            if outcome.succeeded:
                fan_out.succeeded.append(outcome)
            else:
                fan_out.failed.append(outcome)
        return fan_out

    def rank(
        self,
        results: List[SearchResult],
        query: str,
        options: Optional[SearchOptions] = None
    ) -> Tuple[List[SearchResult], int]:
        """
        Filter, score, deduplicate and truncate.

        Returns:
            (ranked results, count before truncation)
        """
        options = options or SearchOptions(limit=self.default_limit)

        kept = self.quality_filter.apply(results, options)
        scored = self.scorer.rank(kept, query, options.sort)
        unique = self.deduplicator.deduplicate(scored)
        if options.diversify:
            unique = diversify(unique)

        total_count = len(unique)
        return unique[:max(options.limit, 0)], total_count

    # =========================================================================
    # TITLE LOOKUP
    # =========================================================================

    async def find_best_match(
        self,
        title: str,
        category: MediaCategory,
        year: Optional[int] = None,
        options: Optional[SearchOptions] = None
    ) -> Optional[SearchResult]:
        """
        Resolve a known title to the closest result of one category.

        Bypasses the cache and the scorer; candidates only pass the quality
        filter before the fuzzy matcher picks one.
        """
        options = options or SearchOptions(limit=self.default_limit)
        fan_out = await self.fan_out(title, self._adapters_for([category]), options)

        candidates = [r for r in fan_out.results if r.category == category]
        candidates = self.quality_filter.apply(candidates, options)
        return self.matcher.best_match(title, candidates, year=year)

    async def get_by_id(self, source_id: str, item_id: str) -> Optional[SearchResult]:
        """
        Detail lookup on one adapter.

        Args:
            source_id: Adapter ID (google_books, tmdb, ...)
            item_id: ID in that adapter's namespace

        Returns:
            SearchResult or None
        """
        adapter = self.adapters.get(source_id)
        if not adapter:
            logger.error(f"Adapter '{source_id}' not found")
            return None

        return await adapter.get_by_id(item_id)

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def get_available_adapters(self) -> List[Dict]:
        """Registered adapters with the categories they serve."""
        return [
            {
                'id': adapter.id,
                'name': adapter.name,
                'categories': [c.value for c in adapter.categories],
            }
            for adapter in self.adapters.values()
        ]

    async def health_check(self) -> Dict[str, bool]:
        """
        Check health of all adapters.

        Returns:
            Dict mapping adapter ID to health status
        """
        probe = SearchOptions(limit=1)

        async def _check(adapter_id: str, adapter: BaseSourceAdapter):
            try:
                await asyncio.wait_for(adapter.fetch("test", probe), timeout=self.timeout_for(adapter))
                return adapter_id, True
            except Exception as e:
                logger.error(f"Health check failed for {adapter_id}: {e!r}")
                return adapter_id, False

        results = await asyncio.gather(
            *(_check(adapter_id, adapter) for adapter_id, adapter in self.adapters.items())
        )
        return {adapter_id: status for adapter_id, status in results}

    async def close(self) -> None:
        """Close all adapter HTTP clients."""
        logger.info("Closing source adapters...")
        for adapter in self.adapters.values():
            await adapter.close()

    def timeout_for(self, adapter: BaseSourceAdapter) -> float:
        """Adapter-level fan-out budget, falling back to the aggregator default."""
        return adapter.branch_timeout or self.branch_timeout

    def _adapters_for(self, categories: Iterable[MediaCategory]) -> List[BaseSourceAdapter]:
        wanted = set(categories)
        return [
            adapter for adapter in self.adapters.values()
            if wanted.intersection(adapter.categories)
        ]

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)
