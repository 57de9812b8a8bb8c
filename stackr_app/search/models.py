"""
================================================================================
Stackr - Search Models
================================================================================
Common result shape shared by every source adapter.

Each external API (Google Books, iTunes, RAWG, OMDB, TMDB, Steam,
CheapShark) has its own field names and rating scales. Adapters convert
into SearchResult so the filter, scorer and deduplicator only ever see
one shape.

Conventions:
  - rating is always on a 0-10 scale (converted at the adapter boundary)
  - score fields are recomputed for every query and never persisted
================================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================

class MediaCategory(str, Enum):
    """Media type a result belongs to."""
    MOVIE = "movie"
    TV = "tv"
    BOOK = "book"
    GAME = "game"
    MUSIC_TRACK = "music-track"

    @classmethod
    def parse(cls, value: str) -> "MediaCategory":
        """Accept canonical values plus the plural forms the web UI sends."""
        aliases = {
            'movies': cls.MOVIE,
            'series': cls.TV,
            'books': cls.BOOK,
            'games': cls.GAME,
            'music': cls.MUSIC_TRACK,
            'track': cls.MUSIC_TRACK,
        }
        value = (value or '').strip().lower()
        if value in aliases:
            return aliases[value]
        return cls(value)


class SortMode(str, Enum):
    """Named ranking presets."""
    RELEVANCE = "relevance"
    POPULARITY = "popularity"
    DATE = "date"
    MIXED = "mixed"


ALL_CATEGORIES: Tuple[MediaCategory, ...] = tuple(MediaCategory)


# =============================================================================
# RESULT
# =============================================================================

@dataclass
class SearchResult:
    """
    One normalized search hit.

    Built fresh from a raw API response for each search call, scored,
    possibly discarded, and dropped at the end of the request.
    """

    id: str
    title: str
    category: MediaCategory
    source_id: str

    # Author / artist / director / developer
    creator: Optional[str] = None

    year: Optional[int] = None

    # 0-10 scale
    rating: Optional[float] = None
    rating_count: Optional[int] = None

    # Source-specific (ratings count, play estimate, review total...)
    popularity_metric: Optional[float] = None

    image: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None

    genres: List[str] = field(default_factory=list)
    explicit: bool = False

    # Example: {'isbn13': '9780441172719', 'imdb': 'tt1375666'}
    external_ids: Dict[str, str] = field(default_factory=dict)

    # Adapter pass-through (metacritic, page count, price...)
    extra: Dict[str, Any] = field(default_factory=dict)

    # =========================================================================
    # DERIVED SCORES (per query)
    # =========================================================================

    title_score: float = 0.0
    secondary_score: float = 0.0
    quality_score: float = 0.0
    popularity_score: float = 0.0
    recency_score: float = 0.0
    total_score: float = 0.0

    def reset_scores(self) -> None:
        self.title_score = 0.0
        self.secondary_score = 0.0
        self.quality_score = 0.0
        self.popularity_score = 0.0
        self.recency_score = 0.0
        self.total_score = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'title': self.title,
            'category': self.category.value,
            'source_id': self.source_id,
            'creator': self.creator,
            'year': self.year,
            'rating': self.rating,
            'rating_count': self.rating_count,
            'popularity_metric': self.popularity_metric,
            'image': self.image,
            'description': self.description,
            'url': self.url,
            'genres': self.genres,
            'explicit': self.explicit,
            'external_ids': self.external_ids,
            'extra': self.extra,
            'scores': {
                'title': round(self.title_score, 2),
                'secondary': round(self.secondary_score, 2),
                'quality': round(self.quality_score, 2),
                'popularity': round(self.popularity_score, 2),
                'recency': round(self.recency_score, 2),
                'total': round(self.total_score, 2),
            },
        }


# =============================================================================
# OPTIONS
# =============================================================================

@dataclass
class SearchOptions:
    """Options bag handed to adapters and to the ranking pipeline."""

    limit: int = 20
    language: str = "en"
    market: str = "US"
    sort: SortMode = SortMode.MIXED
    include_explicit: bool = True
    min_year: Optional[int] = None
    max_year: Optional[int] = None
    genre: Optional[str] = None
    # Overrides the quality filter's rating floor (0-10 scale)
    min_rating: Optional[float] = None
    diversify: bool = False

    def cache_key_parts(self) -> Tuple:
        return (
            self.limit,
            self.language,
            self.market,
            self.sort.value,
            self.include_explicit,
            self.min_year,
            self.max_year,
            (self.genre or '').lower(),
            self.min_rating,
            self.diversify,
        )


# =============================================================================
# FAN-OUT / AGGREGATION RESULTS
# =============================================================================

@dataclass
class AdapterOutcome:
    """What one adapter branch produced during a fan-out."""
    source_id: str
    results: List[SearchResult] = field(default_factory=list)
    error: Optional[str] = None
    elapsed_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class FanOutResult:
    """Partial-success container: which branches worked and which failed."""
    succeeded: List[AdapterOutcome] = field(default_factory=list)
    failed: List[AdapterOutcome] = field(default_factory=list)

    @property
    def results(self) -> List[SearchResult]:
        """Results of every successful branch, in batch order."""
        merged: List[SearchResult] = []
        for outcome in self.succeeded:
            merged.extend(outcome.results)
        return merged


@dataclass
class AggregatedSearch:
    """Final ranked answer for one query."""
    query: str
    results: List[SearchResult] = field(default_factory=list)
    total_count: int = 0
    elapsed_ms: int = 0
    from_cache: bool = False
    succeeded_sources: List[str] = field(default_factory=list)
    failed_sources: List[str] = field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        """True when sources were queried and every one of them failed."""
        return bool(self.failed_sources) and not self.succeeded_sources

    def to_dict(self) -> dict:
        return {
            'query': self.query,
            'results': [result.to_dict() for result in self.results],
            'total_count': self.total_count,
            'elapsed_ms': self.elapsed_ms,
            'from_cache': self.from_cache,
            'succeeded_sources': self.succeeded_sources,
            'failed_sources': self.failed_sources,
            'all_failed': self.all_failed,
        }
