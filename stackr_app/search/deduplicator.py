"""
================================================================================
Stackr - Search Result Deduplicator
================================================================================
Collapses results that represent the same underlying item.

Problem:
  "The Matrix" comes back from OMDB and TMDB, the same novel appears twice
  in Google Books, a track is found via two query variants.

Keys per result:
  1. Every stable external identifier present (ISBN, IMDB id, Steam app id)
  2. category | normalized title | normalized creator | year
     (creator only for categories that require one: books, music)

A result matching any key already seen is dropped. First-seen wins. There
is no score reconciliation, so run this after the scorer has sorted the list.
================================================================================
"""

import logging
from typing import List, Optional, Sequence, Set

from .models import MediaCategory, SearchResult
from .text import normalize_text

logger = logging.getLogger(__name__)


class Deduplicator:
    """First-seen-wins deduplication by identifier or composite key."""

    STABLE_ID_KEYS = ('isbn13', 'isbn10', 'imdb', 'steam')

    # Categories whose composite key includes the creator
    CREATOR_KEYED = {MediaCategory.BOOK, MediaCategory.MUSIC_TRACK}

    def __init__(self, stable_id_keys: Optional[Sequence[str]] = None):
        self.stable_id_keys = tuple(stable_id_keys or self.STABLE_ID_KEYS)

    def key_for(self, result: SearchResult) -> str:
        """
        Primary deduplication key for a result.

        Examples:
            {'imdb': 'tt0133093'} -> "imdb:tt0133093"
            book "Dune" by Frank Herbert, 1965 -> "book|dune|frank herbert|1965"
        """
        return self.keys_for(result)[0]

    def keys_for(self, result: SearchResult) -> List[str]:
        """
        Every key a result answers to: each stable ID it carries, then the
        composite key. OMDB rows carry an IMDB id and TMDB search rows do
        not, so two sources only meet on the composite key.
        """
        keys = []
        for id_key in self.stable_id_keys:
            value = (result.external_ids.get(id_key) or '').strip()
            if value:
                keys.append(f"{id_key}:{value.lower()}")

        year = str(result.year) if result.year else ''
        keys.append(f"{self._title_key(result)}|{year}")
        return keys

    def _title_key(self, result: SearchResult) -> str:
        creator = ''
        if result.category in self.CREATOR_KEYED:
            creator = normalize_text(result.creator or '')
        return f"{result.category.value}|{normalize_text(result.title)}|{creator}"

    def deduplicate(self, results: List[SearchResult]) -> List[SearchResult]:
        """
        Keep the first result under each key, preserving order.

        A result is dropped when any of its keys was already seen. Where one
        side has no year (Steam store rows) the composite key falls back to
        category, title and creator.
        """
        if not results:
            return []

        seen: Set[str] = set()
        unique: List[SearchResult] = []

        for result in results:
            keys = self.keys_for(result)
            title_key = self._title_key(result)
            yearless_key = f"{title_key}|*"
            candidates = keys + [title_key if not result.year else yearless_key]

            duplicate_of = next((key for key in candidates if key in seen), None)
            if duplicate_of:
                logger.debug(f"Dropped duplicate '{result.title}' from {result.source_id} ({duplicate_of})")
                continue

            seen.update(keys)
            seen.add(title_key)
            if not result.year:
                seen.add(yearless_key)
            unique.append(result)

        if len(unique) != len(results):
            logger.info(f"Deduplicated {len(results)} results into {len(unique)}")

        return unique
