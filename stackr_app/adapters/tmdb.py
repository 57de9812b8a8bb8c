"""
================================================================================
Stackr - TMDB Adapter
================================================================================
REST client for The Movie Database (v3).

TMDB Features:
  - One multi-search call covers movies and TV series
  - vote_average is on a 0-10 scale, vote_count gives confidence
  - Genre ids in search results (names resolved from GENRES)
  - API key required

Ids are "<media type>:<tmdb id>" (e.g. "movie:603") because TMDB numbers
movies and series independently.

API Docs: https://developer.themoviedb.org/reference/search-multi
================================================================================
"""

from typing import List, Optional, Tuple
import logging

from .base import BaseSourceAdapter, clean, parse_year
from .schemas import TmdbItem, TmdbSearchResponse
from ..search.models import MediaCategory, SearchOptions, SearchResult

logger = logging.getLogger(__name__)

IMAGE_BASE = "https://image.tmdb.org/t/p/w500"

MEDIA_TYPES = {
    'movie': MediaCategory.MOVIE,
    'tv': MediaCategory.TV,
}

# Movie and TV genre ids used by search results
GENRES = {
    28: "Action", 12: "Adventure", 16: "Animation", 35: "Comedy", 80: "Crime",
    99: "Documentary", 18: "Drama", 10751: "Family", 14: "Fantasy", 36: "History",
    27: "Horror", 10402: "Music", 9648: "Mystery", 10749: "Romance",
    878: "Science Fiction", 10770: "TV Movie", 53: "Thriller", 10752: "War",
    37: "Western", 10759: "Action & Adventure", 10762: "Kids", 10763: "News",
    10764: "Reality", 10765: "Sci-Fi & Fantasy", 10766: "Soap", 10767: "Talk",
    10768: "War & Politics",
}


def split_id(item_id: str) -> Tuple[str, str]:
    """
    Split a composite id.

    Examples:
        "movie:603" -> ("movie", "603")
        "603" -> ("movie", "603")
    """
    media_type, _, tmdb_id = item_id.partition(':')
    if not tmdb_id:
        return 'movie', media_type
    return media_type, tmdb_id


class TmdbAdapter(BaseSourceAdapter):
    """TMDB multi-search (movies, series)."""

    id = "tmdb"
    name = "TMDB"
    base_url = "https://api.themoviedb.org/3"
    categories = (MediaCategory.MOVIE, MediaCategory.TV)

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key

    def _language(self, options: SearchOptions) -> str:
        return f"{options.language}-{options.market}" if options.market else options.language

    async def fetch(self, query: str, options: SearchOptions) -> List[SearchResult]:
        params = {
            'api_key': self.api_key,
            'query': query,
            'language': self._language(options),
            'include_adult': 'false',
            'page': 1,
        }
        payload = await self._request("GET", f"{self.base_url}/search/multi", params=params)
        envelope = self._validate(TmdbSearchResponse, payload)

        results = self._map_items(envelope.results, self._parse_item)
        return results[:max(options.limit, 0)]

    async def get_by_id(self, item_id: str) -> Optional[SearchResult]:
        """
        Get a movie or series by composite id, with credits and IMDB id.

        Returns:
            SearchResult or None
        """
        media_type, tmdb_id = split_id(item_id)
        if media_type not in MEDIA_TYPES:
            logger.error(f"{self.id}: Unknown media type in '{item_id}'")
            return None

        try:
            payload = await self._request(
                "GET",
                f"{self.base_url}/{media_type}/{tmdb_id}",
                params={'api_key': self.api_key, 'append_to_response': 'credits,external_ids'}
            )
            payload['media_type'] = media_type
            return self._parse_item(payload)
        except Exception as e:
            logger.error(f"{self.id}: Get by ID failed for '{item_id}': {e}")
            return None

    def _parse_item(self, raw: dict) -> Optional[SearchResult]:
        """
        Parse a TMDB movie/tv object into SearchResult.

        Returns:
            SearchResult, or None for people and other media types
        """
        item = TmdbItem.model_validate(raw)
        category = MEDIA_TYPES.get(item.media_type or '')
        if category is None:
            return None

        composite_id = f"{item.media_type}:{item.id}"

        if item.genres:
            genres = [g.name for g in item.genres]
        else:
            genres = [GENRES[g] for g in item.genre_ids if g in GENRES]

        external_ids = {'tmdb': composite_id}
        imdb_id = item.imdb_id or item.external_ids.get('imdb_id')
        if imdb_id:
            external_ids['imdb'] = imdb_id

        return SearchResult(
            id=composite_id,
            title=(item.title or item.name or '').strip(),
            category=category,
            source_id=self.id,
            creator=self._creator(item),
            year=parse_year(item.release_date or item.first_air_date),
            # Unvoted titles report 0.0
            rating=item.vote_average if item.vote_count else None,
            rating_count=item.vote_count,
            popularity_metric=item.vote_count,
            image=f"{IMAGE_BASE}{item.poster_path}" if item.poster_path else None,
            description=clean(item.overview),
            url=f"https://www.themoviedb.org/{item.media_type}/{item.id}",
            genres=genres,
            explicit=item.adult,
            external_ids=external_ids,
            extra={'tmdb_popularity': item.popularity},
        )

    @staticmethod
    def _creator(item: TmdbItem) -> Optional[str]:
        """Director (movies) or creators (series); only present on detail responses."""
        if item.created_by:
            names = [c.get('name') for c in item.created_by if c.get('name')]
            return ', '.join(names) or None
        for member in item.credits.get('crew', []):
            if member.get('job') == 'Director' and member.get('name'):
                return member['name']
        return None
