"""
================================================================================
Stackr - CheapShark Adapter
================================================================================
REST client for the CheapShark deals API (PC game prices across stores).

CheapShark Features:
  - No authentication
  - Metacritic score and Steam rating percent per deal
  - Steam app ids (used for deduplication against the Steam adapter)

One game appears once per store carrying it; deals are collapsed by gameID,
keeping the first (best-rated) deal.

API Docs: https://apidocs.cheapshark.com/
================================================================================
"""

from datetime import datetime, timezone
from typing import List, Optional
import logging

from .base import BaseSourceAdapter, parse_number
from .schemas import CheapSharkDeal, CheapSharkDealsResponse
from ..search.models import MediaCategory, SearchOptions, SearchResult

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 60


def release_year(timestamp: Optional[int]) -> Optional[int]:
    """Year of a unix timestamp; CheapShark uses 0 for "unknown"."""
    if not timestamp:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).year


class CheapSharkAdapter(BaseSourceAdapter):
    """CheapShark deal search (games)."""

    id = "cheapshark"
    name = "CheapShark"
    base_url = "https://www.cheapshark.com/api/1.0"
    categories = (MediaCategory.GAME,)

    async def fetch(self, query: str, options: SearchOptions) -> List[SearchResult]:
        params = {
            'title': query,
            'pageSize': MAX_PAGE_SIZE,
            'sortBy': 'Deal Rating',
        }
        payload = await self._request("GET", f"{self.base_url}/deals", params=params)
        deals = self._validate(CheapSharkDealsResponse, payload).root

        results = []
        seen_games = set()
        for result in self._map_items(deals, self._parse_deal):
            if result.id in seen_games:
                continue
            seen_games.add(result.id)
            results.append(result)

        return results[:max(options.limit, 0)]

    def _parse_deal(self, raw: dict) -> SearchResult:
        deal = CheapSharkDeal.model_validate(raw)

        metacritic = parse_number(deal.metacriticScore)
        steam_percent = parse_number(deal.steamRatingPercent)
        steam_count = parse_number(deal.steamRatingCount)

        if metacritic:
            rating = metacritic / 10
        elif steam_percent:
            rating = steam_percent / 10
        else:
            rating = None

        external_ids = {'cheapshark': deal.gameID}
        if deal.steamAppID:
            external_ids['steam'] = deal.steamAppID

        return SearchResult(
            id=deal.gameID,
            title=(deal.title or '').strip(),
            category=MediaCategory.GAME,
            source_id=self.id,
            year=release_year(deal.releaseDate),
            rating=rating,
            rating_count=int(steam_count) if steam_count else None,
            popularity_metric=steam_count or None,
            image=deal.thumb,
            url=f"https://www.cheapshark.com/redirect?dealID={deal.dealID}" if deal.dealID else None,
            external_ids=external_ids,
            extra={
                'sale_price': parse_number(deal.salePrice),
                'normal_price': parse_number(deal.normalPrice),
                'metacritic': int(metacritic) if metacritic else None,
                'steam_rating_text': deal.steamRatingText,
            },
        )
