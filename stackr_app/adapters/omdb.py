"""
================================================================================
Stackr - OMDB Adapter
================================================================================
REST client for the Open Movie Database.

OMDB Features:
  - IMDB ids (used for deduplication against TMDB)
  - imdbRating is already on a 0-10 scale
  - API key required

Two-step search:
  1. ?s=<query>   - titles, years, ids and posters only
  2. ?i=<imdbID>  - rating, votes, director, plot; fetched concurrently for
                    the first detail_limit hits. A failed detail call keeps
                    the bare search item.

OMDB reports "no match" as HTTP 200 with Response "False".

API Docs: https://www.omdbapi.com/
================================================================================
"""

import asyncio
import logging
from typing import List, Optional

from .base import BaseSourceAdapter, clean, parse_number, parse_year
from .schemas import OmdbDetail, OmdbSearchItem, OmdbSearchResponse
from ..search.errors import TransportError
from ..search.models import MediaCategory, SearchOptions, SearchResult

logger = logging.getLogger(__name__)

# OMDB "Type" -> category; episodes and games are ignored
TYPE_MAP = {
    'movie': MediaCategory.MOVIE,
    'series': MediaCategory.TV,
}

# Error messages OMDB uses for "nothing to show"
NO_MATCH_ERRORS = ('not found', 'too many results')


class OmdbAdapter(BaseSourceAdapter):
    """OMDB title search with detail enrichment (movies, series)."""

    id = "omdb"
    name = "OMDB"
    base_url = "https://www.omdbapi.com/"
    categories = (MediaCategory.MOVIE, MediaCategory.TV)

    def __init__(self, api_key: str, detail_limit: int = 5, **kwargs):
        """
        Args:
            api_key: OMDB API key
            detail_limit: How many hits get the detail call
        """
        super().__init__(**kwargs)
        self.api_key = api_key
        self.detail_limit = detail_limit

    async def fetch(self, query: str, options: SearchOptions) -> List[SearchResult]:
        payload = await self._request(
            "GET", self.base_url, params={'apikey': self.api_key, 's': query, 'page': 1}
        )
        envelope = self._validate(OmdbSearchResponse, payload)

        if envelope.response != 'True':
            error = (envelope.error or '').lower()
            if error and not any(phrase in error for phrase in NO_MATCH_ERRORS):
                # Invalid key, request limit reached...
                raise TransportError(self.id, f"OMDB error: {envelope.error}")
            return []

        results = self._map_items(envelope.search[:max(options.limit, 0)], self._parse_search_item)
        if not results or self.detail_limit <= 0:
            return results

        head = results[:self.detail_limit]
        details = await asyncio.gather(
            *(self._fetch_detail(result.id) for result in head),
            return_exceptions=True,
        )

        enriched = []
        for result, detail in zip(head, details):
            if isinstance(detail, BaseException):
                logger.warning(f"{self.id}: Detail lookup failed for {result.id}: {detail}")
                enriched.append(result)
            elif detail is None:
                enriched.append(result)
            else:
                enriched.append(self._merge_detail(result, detail))

        return enriched + results[self.detail_limit:]

    async def get_by_id(self, item_id: str) -> Optional[SearchResult]:
        """
        Get a title by IMDB id.

        Returns:
            SearchResult or None
        """
        try:
            detail = await self._fetch_detail(item_id)
            if detail is None or not detail.imdb_id or not detail.title:
                return None
            category = TYPE_MAP.get((detail.type or '').lower())
            if category is None:
                return None
            bare = SearchResult(
                id=detail.imdb_id,
                title=detail.title,
                category=category,
                source_id=self.id,
                external_ids={'imdb': detail.imdb_id},
            )
            return self._merge_detail(bare, detail)
        except Exception as e:
            logger.error(f"{self.id}: Get by ID failed for '{item_id}': {e}")
            return None

    async def _fetch_detail(self, imdb_id: str) -> Optional[OmdbDetail]:
        payload = await self._request(
            "GET", self.base_url, params={'apikey': self.api_key, 'i': imdb_id, 'plot': 'short'}
        )
        detail = self._validate(OmdbDetail, payload)
        if detail.response != 'True':
            return None
        return detail

    def _parse_search_item(self, raw: dict) -> Optional[SearchResult]:
        item = OmdbSearchItem.model_validate(raw)
        category = TYPE_MAP.get((item.type or '').lower())
        if category is None:
            return None

        return SearchResult(
            id=item.imdb_id,
            title=item.title.strip(),
            category=category,
            source_id=self.id,
            year=parse_year(item.year),
            image=clean(item.poster),
            url=f"https://www.imdb.com/title/{item.imdb_id}/",
            external_ids={'imdb': item.imdb_id},
        )

    def _merge_detail(self, result: SearchResult, detail: OmdbDetail) -> SearchResult:
        """Fill rating, votes, creator, plot and genres from a detail response."""
        votes = parse_number(clean(detail.imdb_votes))
        genres = clean(detail.genre)
        creator = clean(detail.director) or clean(detail.writer)
        metascore = parse_number(clean(detail.metascore))

        result.rating = parse_number(clean(detail.imdb_rating))
        result.rating_count = int(votes) if votes is not None else None
        result.popularity_metric = votes
        result.creator = creator
        result.description = clean(detail.plot)
        result.genres = [g.strip() for g in genres.split(',')] if genres else []
        result.year = result.year or parse_year(detail.year)
        result.image = result.image or clean(detail.poster)
        result.extra.update({
            'rated': clean(detail.rated),
            'metascore': int(metascore) if metascore is not None else None,
            'total_seasons': clean(detail.total_seasons),
        })
        return result
