"""
================================================================================
Stackr - Relevance Scorer
================================================================================
Assigns each result a total_score usable for ranking within one query.

Algorithm (same pattern for every media type, tuned by weights.py):
  1. Title score      - exact / substring / word-overlap tiers
  2. Secondary score  - same tiers against the creator, lower ceiling
  3. Quality score    - rating multiplier + log10 bonus for vote count
  4. Popularity score - tier table or direct metric
  5. Recency score    - tier table on years since release
  6. Total            - weighted sum, sort-mode multipliers applied

Scores are only comparable between results of the same query.
================================================================================
"""

import math
import logging
from datetime import datetime
from typing import Dict, List, Optional

from .models import MediaCategory, SearchResult, SortMode
from .text import normalize_text
from .weights import (
    CategoryWeights,
    DEFAULT_WEIGHTS,
    DIRECT_POPULARITY_CAP,
    SECONDARY_CONTAINS,
    SECONDARY_EXACT,
    SECONDARY_WORD_SCALE,
    SORT_ADJUSTMENTS,
    SortAdjustment,
    TITLE_CONTAINS,
    TITLE_EXACT,
    TITLE_WORD_SCALE,
    weights_for,
)

logger = logging.getLogger(__name__)


def match_score(
    query: str,
    text: Optional[str],
    exact: float,
    contains: float,
    word_scale: float
) -> float:
    """
    Three-tier text match.

    Args:
        query: Raw user query
        text: Field to match against (title or creator)
        exact: Score when normalized strings are equal
        contains: Score when the normalized query is a substring
        word_scale: Multiplier for the fraction of query words found

    Returns:
        Score between 0 and exact
    """
    normalized_query = normalize_text(query)
    normalized_text = normalize_text(text or '')
    if not normalized_query or not normalized_text:
        return 0.0

    if normalized_text == normalized_query:
        return exact
    if normalized_query in normalized_text:
        return contains

    words = normalized_query.split(' ')
    matches = sum(1 for word in words if word in normalized_text)
    return (matches / len(words)) * word_scale


class RelevanceScorer:
    """Computes component scores and total_score for search results."""

    def __init__(
        self,
        weights: Optional[Dict[MediaCategory, CategoryWeights]] = None,
        sort_adjustments: Optional[Dict[SortMode, SortAdjustment]] = None,
        current_year: Optional[int] = None
    ):
        """
        Args:
            weights: Per-category weights table (default: DEFAULT_WEIGHTS)
            sort_adjustments: Per-sort-mode multipliers
            current_year: Pin "now" for recency (default: wall clock)
        """
        self.weights = DEFAULT_WEIGHTS if weights is None else weights
        self.sort_adjustments = SORT_ADJUSTMENTS if sort_adjustments is None else sort_adjustments
        self._current_year = current_year

    @property
    def current_year(self) -> int:
        return self._current_year or datetime.now().year

    # =========================================================================
    # COMPONENTS
    # =========================================================================

    def title_score(self, query: str, result: SearchResult) -> float:
        return match_score(query, result.title, TITLE_EXACT, TITLE_CONTAINS, TITLE_WORD_SCALE)

    def secondary_score(self, query: str, result: SearchResult) -> float:
        return match_score(
            query, result.creator, SECONDARY_EXACT, SECONDARY_CONTAINS, SECONDARY_WORD_SCALE
        )

    def quality_score(self, result: SearchResult, weights: CategoryWeights) -> float:
        score = 0.0
        if result.rating:
            score += result.rating * weights.rating_multiplier
        if result.rating_count:
            # Logarithmic so a single viral outlier cannot dominate
            score += math.log10(result.rating_count + 1) * weights.count_log_constant
        return score

    def popularity_score(self, result: SearchResult, weights: CategoryWeights) -> float:
        metric = result.popularity_metric
        if metric is None:
            return weights.popularity_default

        if weights.popularity_direct:
            return max(0.0, min(DIRECT_POPULARITY_CAP, float(metric)))

        for threshold, points in weights.popularity_tiers:
            if metric > threshold:
                return points
        return 0.0

    def recency_score(self, result: SearchResult, weights: CategoryWeights) -> float:
        if not result.year:
            return 0.0
        years_old = self.current_year - result.year
        for max_age, points in weights.recency_tiers:
            if years_old <= max_age:
                return points
        return 0.0

    # =========================================================================
    # TOTAL
    # =========================================================================

    def score(
        self,
        result: SearchResult,
        query: str,
        sort: SortMode = SortMode.MIXED
    ) -> SearchResult:
        """Annotate one result with its component scores and total."""
        weights = weights_for(result.category, self.weights)
        adjust = self.sort_adjustments.get(sort) or SortAdjustment()

        result.reset_scores()
        result.title_score = self.title_score(query, result)
        result.secondary_score = self.secondary_score(query, result)
        result.quality_score = self.quality_score(result, weights)
        result.popularity_score = self.popularity_score(result, weights)
        result.recency_score = self.recency_score(result, weights)

        total = (
            result.title_score * weights.title * adjust.title
            + result.secondary_score * weights.secondary * adjust.secondary
            + result.quality_score * weights.quality * adjust.quality
            + result.popularity_score * weights.popularity * adjust.popularity
            + result.recency_score * weights.recency * adjust.recency
        )
        if adjust.fresh_release_bonus and result.year and self.current_year - result.year <= 1:
            total += adjust.fresh_release_bonus

        result.total_score = total
        return result

    def rank(
        self,
        results: List[SearchResult],
        query: str,
        sort: SortMode = SortMode.MIXED
    ) -> List[SearchResult]:
        """
        Score every result and sort by total_score, highest first.

        The sort is stable: equal scores keep their input (adapter) order.
        """
        for result in results:
            self.score(result, query, sort)

        ranked = sorted(results, key=lambda r: r.total_score, reverse=True)

        for index, result in enumerate(ranked[:3]):
            logger.debug(
                f"#{index + 1} {result.title} ({result.source_id}) "
                f"total={result.total_score:.1f} title={result.title_score:.0f}"
            )
        return ranked
