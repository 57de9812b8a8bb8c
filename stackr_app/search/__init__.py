"""
================================================================================
Stackr - Search Package
================================================================================
Cross-source search: normalize, filter, score, deduplicate, merge.

Components:
  - models.py - SearchResult, SearchOptions and fan-out result types
  - quality_filter.py - Drops incomplete or policy-excluded results
  - scorer.py / weights.py - Relevance scoring driven by a weights table
  - deduplicator.py - Collapses the same item found twice
  - cache.py - TTL + LRU cache for aggregated answers
  - aggregator.py - Fan-out over adapters and the ranking pipeline
  - matcher.py - Fuzzy title lookup (rapidfuzz)

The aggregator depends on stackr_app.adapters, so it is imported from its
module rather than re-exported here.
================================================================================
"""

from .cache import SearchCache
from .deduplicator import Deduplicator
from .errors import AdapterError, ConfigurationError, ParseError, SearchError, TransportError
from .matcher import TitleMatcher
from .models import (
    AdapterOutcome,
    AggregatedSearch,
    FanOutResult,
    MediaCategory,
    SearchOptions,
    SearchResult,
    SortMode,
)
from .quality_filter import QualityFilter
from .scorer import RelevanceScorer

__all__ = [
    'SearchCache', 'Deduplicator', 'TitleMatcher', 'QualityFilter', 'RelevanceScorer',
    'AdapterOutcome', 'AggregatedSearch', 'FanOutResult', 'MediaCategory',
    'SearchOptions', 'SearchResult', 'SortMode',
    'SearchError', 'ConfigurationError', 'AdapterError', 'TransportError', 'ParseError',
]
