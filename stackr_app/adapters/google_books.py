"""
================================================================================
Stackr - Google Books Adapter
================================================================================
REST client for the Google Books volumes API.

Google Books Features:
  - ISBN-10 / ISBN-13 identifiers (used for deduplication)
  - averageRating on a 0-5 scale (converted to 0-10)
  - API key optional (anonymous quota is enough for search)

API Docs: https://developers.google.com/books/docs/v1/using
================================================================================
"""

from typing import List, Optional
import logging

from .base import BaseSourceAdapter, clean, parse_year
from .schemas import GoogleVolume, GoogleVolumesResponse
from ..search.models import MediaCategory, SearchOptions, SearchResult

logger = logging.getLogger(__name__)

# API maximum for maxResults
MAX_RESULTS = 40


class GoogleBooksAdapter(BaseSourceAdapter):
    """Google Books volumes search (books)."""

    id = "google_books"
    name = "Google Books"
    base_url = "https://www.googleapis.com/books/v1"
    categories = (MediaCategory.BOOK,)
    branch_timeout = 2.5

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key

    def _params(self, **params) -> dict:
        if self.api_key:
            params['key'] = self.api_key
        return params

    async def fetch(self, query: str, options: SearchOptions) -> List[SearchResult]:
        params = self._params(
            q=query,
            maxResults=max(1, min(options.limit, MAX_RESULTS)),
            printType='books',
            orderBy='relevance',
        )
        if options.language:
            params['langRestrict'] = options.language

        payload = await self._request("GET", f"{self.base_url}/volumes", params=params)
        envelope = self._validate(GoogleVolumesResponse, payload)

        # No "items" key at all means no match
        return self._map_items(envelope.items, self._parse_volume)

    async def get_by_id(self, item_id: str) -> Optional[SearchResult]:
        """
        Get a volume by Google Books id.

        Returns:
            SearchResult or None
        """
        try:
            payload = await self._request(
                "GET", f"{self.base_url}/volumes/{item_id}", params=self._params()
            )
            return self._parse_volume(payload)
        except Exception as e:
            logger.error(f"{self.id}: Get by ID failed for '{item_id}': {e}")
            return None

    def _parse_volume(self, raw: dict) -> SearchResult:
        """
        Parse a Google Books volume into SearchResult.

        Args:
            raw: One element of the "items" array (or a detail response)
        """
        volume = GoogleVolume.model_validate(raw)
        info = volume.volumeInfo

        external_ids = {}
        for identifier in info.industryIdentifiers:
            if identifier.type == 'ISBN_13':
                external_ids['isbn13'] = identifier.identifier
            elif identifier.type == 'ISBN_10':
                external_ids['isbn10'] = identifier.identifier
        external_ids['google_books'] = volume.id

        # Prefer the largest image Google offers, always over https
        image = None
        for size in ('large', 'medium', 'thumbnail', 'smallThumbnail'):
            if info.imageLinks.get(size):
                image = info.imageLinks[size].replace('http://', 'https://')
                break

        return SearchResult(
            id=volume.id,
            title=(info.title or '').strip(),
            category=MediaCategory.BOOK,
            source_id=self.id,
            creator=', '.join(a for a in info.authors if a) or None,
            year=parse_year(info.publishedDate),
            rating=info.averageRating * 2 if info.averageRating is not None else None,
            rating_count=info.ratingsCount,
            popularity_metric=info.ratingsCount,
            image=image,
            description=clean(info.description),
            url=info.infoLink,
            genres=list(info.categories),
            explicit=info.maturityRating == 'MATURE',
            external_ids=external_ids,
            extra={
                'subtitle': info.subtitle,
                'publisher': info.publisher,
                'page_count': info.pageCount,
                'language': info.language,
            },
        )
