"""
================================================================================
Stackr - Fuzzy Title Matcher
================================================================================
Resolves a known title to the best candidate among search results.

Problem:
  The library holds "The Lord of the Rings - Extended Edition" and we need
  its IMDB id. A search returns a dozen candidates with slightly different
  spellings ("Lord of the Rings: The Fellowship of the Ring", ...).

Solution:
  rapidfuzz ratios (basic, token sort, token set) with a year bonus and a
  Levenshtein tie-break.

Not used by the main ranking pipeline, which relies on exact/substring/word
matching only.
================================================================================
"""

import re
import logging
from typing import Iterable, Optional, Tuple
from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

from .models import SearchResult


logger = logging.getLogger(__name__)


class TitleMatcher:
    """
    Fuzzy matcher for resolving titles against search candidates.

    Uses rapidfuzz for string matching with a configurable threshold.
    """

    # Common words to remove during normalization
    STOP_WORDS = {'the', 'a', 'an'}

    ROMAN_NUMERALS = {
        'i': '1', 'ii': '2', 'iii': '3', 'iv': '4', 'v': '5',
        'vi': '6', 'vii': '7', 'viii': '8', 'ix': '9', 'x': '10',
    }

    # Edition suffixes that never change which work is meant
    EDITION_SUFFIX = re.compile(
        r"\s*-\s*(extended|director'?s cut|special edition|uncut|redux|remastered).*$",
        re.IGNORECASE
    )

    # Added when candidate and wanted year agree
    YEAR_BONUS = 5.0

    def __init__(self, threshold: float = 60.0):
        """
        Args:
            threshold: Minimum similarity score for a match (0-100)
        """
        self.threshold = threshold

    def normalize_title(self, title: str) -> str:
        """
        Normalize title for comparison.

        Steps:
          1. Drop trademark symbols and edition suffixes
          2. Lowercase, replace punctuation with spaces
          3. Remove stop words ("the", "a", "an")
          4. Convert Roman numerals to Arabic numbers
          5. Collapse whitespace

        Examples:
            "The Godfather Part II" -> "godfather part 2"
            "Blade Runner - Director's Cut" -> "blade runner"
            "Matrix, The" -> "matrix"
        """
        if not title:
            return ""

        normalized = re.sub(r'[™®©]', '', title)
        normalized = self.EDITION_SUFFIX.sub('', normalized)
        normalized = re.sub(r'[^\w\s]', ' ', normalized.lower())

        words = [w for w in normalized.split() if w not in self.STOP_WORDS]
        words = [self.ROMAN_NUMERALS.get(w, w) for w in words]

        return ' '.join(words).strip()

    def calculate_similarity(self, title1: str, title2: str) -> float:
        """
        Similarity score between two titles (0-100).

        Highest of basic ratio, token-sort ratio (order-independent) and
        token-set ratio (subset matches).

        Examples:
            calculate_similarity("Matrix, The", "The Matrix") -> 100
            calculate_similarity("Inception", "Inceptoin") -> ~89
        """
        if not title1 or not title2:
            return 0.0

        norm1 = self.normalize_title(title1)
        norm2 = self.normalize_title(title2)

        if norm1 == norm2:
            return 100.0

        return max(
            fuzz.ratio(norm1, norm2),
            fuzz.token_sort_ratio(norm1, norm2),
            fuzz.token_set_ratio(norm1, norm2),
        )

    def levenshtein_similarity(self, title1: str, title2: str) -> float:
        """Normalized Levenshtein similarity (0-1), used as a tie-break."""
        return Levenshtein.normalized_similarity(
            self.normalize_title(title1), self.normalize_title(title2)
        )

    def best_match(
        self,
        title: str,
        candidates: Iterable[SearchResult],
        year: Optional[int] = None,
        threshold: Optional[float] = None
    ) -> Optional[SearchResult]:
        """
        Find the candidate that best matches a title.

        Args:
            title: Title to resolve
            candidates: Search results to choose from
            year: Known release year (adds YEAR_BONUS to agreeing candidates)
            threshold: Override of the default threshold

        Returns:
            Best SearchResult at or above threshold, or None
        """
        if threshold is None:
            threshold = self.threshold

        best: Optional[SearchResult] = None
        best_key: Tuple[float, float] = (-1.0, -1.0)

        for candidate in candidates:
            score = self.calculate_similarity(title, candidate.title)
            if year and candidate.year == year:
                score += self.YEAR_BONUS
            key = (score, self.levenshtein_similarity(title, candidate.title))
            if key > best_key:
                best_key = key
                best = candidate

        if best is None:
            logger.debug(f"best_match: no candidates for '{title}'")
            return None

        if best_key[0] >= threshold:
            logger.info(f"Best match for '{title}': '{best.title}' (score={best_key[0]:.1f})")
            return best

        logger.info(
            f"No match for '{title}' above threshold {threshold:.1f}, "
            f"best was '{best.title}' ({best_key[0]:.1f})"
        )
        return None
