"""
================================================================================
Stackr - Scoring Weights
================================================================================
The ranking heuristic as data: one CategoryWeights row per media category
and one SortAdjustment row per sort mode.

Component scores (see scorer.py):
  title      exact 100 / substring 60 / word overlap x 40
  secondary  exact 80  / substring 50 / word overlap x 30
  quality    rating x rating_multiplier + log10(count + 1) x count_log_constant
  popularity tier table on popularity_metric (or the metric itself)
  recency    tier table on years since release

total = sum(category weight x sort multiplier x component) (+ fresh bonus)
================================================================================
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from .models import MediaCategory, SortMode


# Title / secondary match tiers
TITLE_EXACT = 100.0
TITLE_CONTAINS = 60.0
TITLE_WORD_SCALE = 40.0

SECONDARY_EXACT = 80.0
SECONDARY_CONTAINS = 50.0
SECONDARY_WORD_SCALE = 30.0

# Cap for popularity metrics used directly as a score
DIRECT_POPULARITY_CAP = 100.0


@dataclass(frozen=True)
class CategoryWeights:
    """Per-category tuning of the relevance heuristic."""

    title: float = 1.0
    secondary: float = 0.0
    quality: float = 1.0
    popularity: float = 1.0
    recency: float = 1.0

    # quality = rating (0-10) x rating_multiplier + log10(count + 1) x count_log_constant
    rating_multiplier: float = 4.0
    count_log_constant: float = 3.0

    # ((threshold, points), ...) highest threshold first; metric must exceed threshold
    popularity_tiers: Tuple[Tuple[float, float], ...] = ()
    # Use the metric itself (capped) instead of tiers
    popularity_direct: bool = False
    # Score used when the result carries no popularity metric
    popularity_default: float = 0.0

    # ((max_years_old, points), ...) smallest age first
    recency_tiers: Tuple[Tuple[int, float], ...] = ((1, 10.0), (3, 5.0))


@dataclass(frozen=True)
class SortAdjustment:
    """Multipliers a sort mode applies on top of the category weights."""

    title: float = 1.0
    secondary: float = 1.0
    quality: float = 1.0
    popularity: float = 1.0
    recency: float = 1.0
    # Flat bonus for results released within the last year
    fresh_release_bonus: float = 0.0


_SCREEN = CategoryWeights(
    secondary=0.25,
    recency=0.5,
    rating_multiplier=3.0,
    count_log_constant=2.0,
    popularity_tiers=((10000, 20.0), (1000, 15.0), (100, 10.0), (10, 5.0)),
)

DEFAULT_WEIGHTS: Dict[MediaCategory, CategoryWeights] = {
    MediaCategory.MOVIE: _SCREEN,
    MediaCategory.TV: _SCREEN,
    MediaCategory.BOOK: CategoryWeights(
        secondary=0.5,
        recency=0.5,
        rating_multiplier=4.0,  # 5-star book = 40 points
        count_log_constant=3.0,
        popularity_tiers=((1000, 20.0), (100, 15.0), (10, 10.0)),
    ),
    MediaCategory.GAME: CategoryWeights(
        secondary=0.25,
        rating_multiplier=3.0,
        count_log_constant=2.0,
        popularity_tiers=((50000, 20.0), (10000, 15.0), (1000, 10.0), (100, 5.0)),
        recency_tiers=((1, 20.0), (3, 10.0), (5, 5.0)),
    ),
    MediaCategory.MUSIC_TRACK: CategoryWeights(
        secondary=1.0,
        popularity=0.5,
        rating_multiplier=0.0,  # iTunes has no ratings
        count_log_constant=0.0,
        popularity_direct=True,
        popularity_default=30.0,
        recency_tiers=((1, 20.0), (3, 10.0), (5, 5.0)),
    ),
}

SORT_ADJUSTMENTS: Dict[SortMode, SortAdjustment] = {
    SortMode.RELEVANCE: SortAdjustment(title=1.25, secondary=1.25, popularity=0.75),
    SortMode.POPULARITY: SortAdjustment(quality=1.25, popularity=1.5),
    SortMode.DATE: SortAdjustment(recency=2.0, fresh_release_bonus=30.0),
    SortMode.MIXED: SortAdjustment(),
}


def weights_for(
    category: MediaCategory,
    table: Optional[Dict[MediaCategory, CategoryWeights]] = None
) -> CategoryWeights:
    """Weights row for a category, falling back to the neutral defaults."""
    table = DEFAULT_WEIGHTS if table is None else table
    return table.get(category) or CategoryWeights()


def with_overrides(
    table: Dict[MediaCategory, CategoryWeights],
    category: MediaCategory,
    **changes
) -> Dict[MediaCategory, CategoryWeights]:
    """Copy of a weights table with one row tweaked."""
    updated = dict(table)
    updated[category] = replace(weights_for(category, table), **changes)
    return updated
