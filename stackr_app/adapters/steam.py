"""
================================================================================
Stackr - Steam Store Adapter
================================================================================
Client for the public Steam storefront endpoints.

Two calls:
  1. storesearch   - names, app ids, price, metascore (no key needed)
  2. appreviews    - review summary per app, fetched concurrently for the
                     first review_limit hits; failures are ignored

Rating: metascore / 10 when present, otherwise the share of positive
reviews on a 0-10 scale.
================================================================================
"""

import asyncio
import logging
from typing import List, Optional

from .base import BaseSourceAdapter, parse_number
from .schemas import SteamReviewSummary, SteamReviewsResponse, SteamStoreItem, SteamStoreSearchResponse
from ..search.models import MediaCategory, SearchOptions, SearchResult

logger = logging.getLogger(__name__)

HEADER_IMAGE = "https://cdn.akamai.steamstatic.com/steam/apps/{app_id}/header.jpg"

# Storefront language names for the common ISO codes
LANGUAGES = {
    'en': 'english', 'de': 'german', 'fr': 'french', 'es': 'spanish',
    'it': 'italian', 'pt': 'portuguese', 'ru': 'russian', 'ja': 'japanese',
}


class SteamAdapter(BaseSourceAdapter):
    """Steam store search with review summaries (games)."""

    id = "steam"
    name = "Steam"
    base_url = "https://store.steampowered.com"
    categories = (MediaCategory.GAME,)

    def __init__(self, review_limit: int = 5, **kwargs):
        """
        Args:
            review_limit: How many hits get the review-summary call
        """
        super().__init__(**kwargs)
        self.review_limit = review_limit

    async def fetch(self, query: str, options: SearchOptions) -> List[SearchResult]:
        params = {
            'term': query,
            'l': LANGUAGES.get(options.language, 'english'),
            'cc': options.market or 'US',
        }
        payload = await self._request("GET", f"{self.base_url}/api/storesearch/", params=params)
        envelope = self._validate(SteamStoreSearchResponse, payload)

        results = self._map_items(envelope.items, self._parse_item)[:max(options.limit, 0)]
        if not results or self.review_limit <= 0:
            return results

        head = results[:self.review_limit]
        summaries = await asyncio.gather(
            *(self._fetch_reviews(result.id) for result in head),
            return_exceptions=True,
        )
        for result, summary in zip(head, summaries):
            if isinstance(summary, BaseException):
                logger.warning(f"{self.id}: Review summary failed for app {result.id}: {summary}")
            elif summary is not None:
                self._merge_reviews(result, summary)

        return results

    async def _fetch_reviews(self, app_id: str) -> Optional[SteamReviewSummary]:
        payload = await self._request(
            "GET",
            f"{self.base_url}/appreviews/{app_id}",
            params={'json': 1, 'language': 'all', 'purchase_type': 'all', 'num_per_page': 0}
        )
        envelope = self._validate(SteamReviewsResponse, payload)
        if envelope.success != 1:
            return None
        return envelope.query_summary

    def _parse_item(self, raw: dict) -> Optional[SearchResult]:
        item = SteamStoreItem.model_validate(raw)
        if item.type and item.type != 'app':
            return None

        app_id = str(item.id)
        metascore = parse_number(item.metascore)

        price = None
        if item.price and item.price.get('final') is not None:
            price = item.price['final'] / 100

        return SearchResult(
            id=app_id,
            title=(item.name or '').strip(),
            category=MediaCategory.GAME,
            source_id=self.id,
            rating=metascore / 10 if metascore else None,
            image=HEADER_IMAGE.format(app_id=app_id),
            url=f"{self.base_url}/app/{app_id}",
            external_ids={'steam': app_id},
            extra={
                'metascore': int(metascore) if metascore else None,
                'price': price,
                'currency': (item.price or {}).get('currency'),
                'thumbnail': item.tiny_image,
            },
        )

    @staticmethod
    def _merge_reviews(result: SearchResult, summary: SteamReviewSummary) -> None:
        total = summary.total_reviews or (summary.total_positive + summary.total_negative)
        if not total:
            return
        result.rating_count = total
        result.popularity_metric = total
        if result.rating is None:
            result.rating = round(summary.total_positive / total * 10, 1)
        result.extra['review_summary'] = summary.review_score_desc
