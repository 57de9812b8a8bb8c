"""
Quality filter for normalized search results.

Drops results that are structurally incomplete or policy-excluded before
they reach scoring. Pure predicate composition: no state, no I/O, surviving
results are returned untouched.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .models import MediaCategory, SearchOptions, SearchResult
from .text import contains_phrase

logger = logging.getLogger(__name__)


# 2.0 / 5 expressed on the canonical 0-10 scale
DEFAULT_RATING_FLOOR = 4.0


@dataclass(frozen=True)
class FilterPolicy:
    """Completeness and content rules for one category."""
    requires_creator: bool = False
    require_image: bool = False
    min_description_length: int = 0
    denylist: Tuple[str, ...] = ()


_SCREEN_DENYLIST = ('camrip', 'cam rip', 'fan edit', 'fanedit', 'trailer', 'teaser')

DEFAULT_FILTER_POLICIES: Dict[MediaCategory, FilterPolicy] = {
    MediaCategory.MOVIE: FilterPolicy(denylist=_SCREEN_DENYLIST),
    MediaCategory.TV: FilterPolicy(denylist=_SCREEN_DENYLIST),
    MediaCategory.BOOK: FilterPolicy(
        requires_creator=True,
        denylist=('study guide', 'summary of', 'sparknotes'),
    ),
    MediaCategory.GAME: FilterPolicy(denylist=('dlc', 'soundtrack', 'season pass')),
    MediaCategory.MUSIC_TRACK: FilterPolicy(requires_creator=True, denylist=('karaoke',)),
}


class QualityFilter:
    """
    Rejects results failing basic completeness or content checks.

    Rules (all must pass):
      - non-empty title
      - non-empty creator when the category requires one (book, music)
      - rating, when present, at or above the floor
      - title free of the category's denylisted phrases
      - optional: image / description length (per policy)
      - option-driven: explicit content, year window, genre
    """

    def __init__(
        self,
        policies: Optional[Dict[MediaCategory, FilterPolicy]] = None,
        rating_floor: float = DEFAULT_RATING_FLOOR
    ):
        self.policies = DEFAULT_FILTER_POLICIES if policies is None else policies
        self.rating_floor = rating_floor

    def policy_for(self, category: MediaCategory) -> FilterPolicy:
        return self.policies.get(category) or FilterPolicy()

    def rejection_reason(
        self,
        result: SearchResult,
        options: Optional[SearchOptions] = None
    ) -> Optional[str]:
        """Why a result would be dropped, or None when it passes."""
        policy = self.policy_for(result.category)

        if not result.title or not result.title.strip():
            return "missing title"

        if policy.requires_creator and not (result.creator or '').strip():
            return "missing creator"

        floor = self.rating_floor
        if options and options.min_rating is not None:
            floor = options.min_rating
        if result.rating is not None and result.rating < floor:
            return f"rating {result.rating} below {floor}"

        for phrase in policy.denylist:
            if contains_phrase(result.title, phrase):
                return f"denylisted phrase '{phrase}'"

        if policy.require_image and not result.image:
            return "missing image"

        if len(result.description or '') < policy.min_description_length:
            return "description too short"

        if options:
            if not options.include_explicit and result.explicit:
                return "explicit content"
            if options.min_year and result.year and result.year < options.min_year:
                return "released before min_year"
            if options.max_year and result.year and result.year > options.max_year:
                return "released after max_year"
            if options.genre and result.genres:
                wanted = options.genre.lower()
                if not any(wanted in genre.lower() for genre in result.genres):
                    return f"genre mismatch ({options.genre})"

        return None

    def accepts(self, result: SearchResult, options: Optional[SearchOptions] = None) -> bool:
        return self.rejection_reason(result, options) is None

    def apply(
        self,
        results: List[SearchResult],
        options: Optional[SearchOptions] = None
    ) -> List[SearchResult]:
        """Keep the results that pass every rule, preserving order."""
        kept = []
        for result in results:
            reason = self.rejection_reason(result, options)
            if reason is None:
                kept.append(result)
            else:
                logger.debug(f"Filtered {result.source_id}:{result.id} '{result.title}': {reason}")

        if len(kept) != len(results):
            logger.info(f"Quality filter kept {len(kept)}/{len(results)} results")
        return kept
