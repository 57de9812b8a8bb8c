"""
================================================================================
Stackr - RAWG Adapter
================================================================================
REST client for the RAWG video game database.

RAWG Features:
  - Largest open games catalogue (500k+ titles)
  - rating on a 0-5 scale (converted to 0-10), metacritic 0-100
  - API key required

Hybrid search:
  Plain relevance search buries new releases under older, better-known
  titles. Two queries run side by side:
    1. "recent"  - release window from 2 years ago to 2 years ahead,
                   ordered by release date (secondary; may fail)
    2. "classic" - plain search (primary; its failure fails the adapter)
  Recent results come first, classic results fill in, deduplicated by id.

API Docs: https://api.rawg.io/docs/
================================================================================
"""

import asyncio
import logging
from datetime import date
from typing import List, Optional

from .base import BaseSourceAdapter, clean, parse_year
from .schemas import RawgGame, RawgGamesResponse
from ..search.errors import AdapterError
from ..search.models import MediaCategory, SearchOptions, SearchResult

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 40
RECENT_WINDOW_YEARS = 2


class RawgAdapter(BaseSourceAdapter):
    """RAWG game search (games)."""

    id = "rawg"
    name = "RAWG"
    base_url = "https://api.rawg.io/api"
    categories = (MediaCategory.GAME,)

    def __init__(self, api_key: str, today: Optional[date] = None, **kwargs):
        """
        Args:
            api_key: RAWG API key
            today: Pin the recent-release window (tests)
        """
        super().__init__(**kwargs)
        self.api_key = api_key
        self._today = today

    def recent_window(self) -> str:
        """RAWG "dates" parameter for the recent-release query."""
        today = self._today or date.today()
        start = date(today.year - RECENT_WINDOW_YEARS, 1, 1)
        end = date(today.year + RECENT_WINDOW_YEARS, 12, 31)
        return f"{start.isoformat()},{end.isoformat()}"

    async def fetch(self, query: str, options: SearchOptions) -> List[SearchResult]:
        page_size = max(1, min(options.limit, MAX_PAGE_SIZE))
        classic_params = {
            'key': self.api_key,
            'search': query,
            'page_size': page_size,
            'search_precise': 'true',
        }
        recent_params = dict(
            classic_params,
            dates=self.recent_window(),
            ordering='-released',
        )

        recent, classic = await asyncio.gather(
            self._request("GET", f"{self.base_url}/games", params=recent_params),
            self._request("GET", f"{self.base_url}/games", params=classic_params),
            return_exceptions=True,
        )

        if isinstance(classic, BaseException):
            raise classic

        classic_results = self._map_items(
            self._validate(RawgGamesResponse, classic).results, self._parse_game
        )

        try:
            if isinstance(recent, BaseException):
                raise recent
            recent_results = self._map_items(
                self._validate(RawgGamesResponse, recent).results, self._parse_game
            )
        except AdapterError as e:
            logger.warning(f"{self.id}: Recent-release query failed for '{query}': {e}")
            return classic_results

        merged = list(recent_results)
        seen = {result.id for result in merged}
        for result in classic_results:
            if result.id not in seen:
                seen.add(result.id)
                merged.append(result)

        logger.debug(
            f"{self.id}: {len(recent_results)} recent + {len(classic_results)} classic "
            f"-> {len(merged)} games for '{query}'"
        )
        return merged

    async def get_by_id(self, item_id: str) -> Optional[SearchResult]:
        """
        Get a game by RAWG id or slug (detail includes developers).

        Returns:
            SearchResult or None
        """
        try:
            payload = await self._request(
                "GET", f"{self.base_url}/games/{item_id}", params={'key': self.api_key}
            )
            return self._parse_game(payload)
        except Exception as e:
            logger.error(f"{self.id}: Get by ID failed for '{item_id}': {e}")
            return None

    def _parse_game(self, raw: dict) -> SearchResult:
        """
        Parse a RAWG game object into SearchResult.

        Args:
            raw: Element of "results" or a detail response
        """
        game = RawgGame.model_validate(raw)

        popularity = None
        if game.ratings_count is not None or game.added is not None:
            popularity = (game.ratings_count or 0) + (game.added or 0)

        developers = [d.name for d in game.developers if d.name]

        return SearchResult(
            id=str(game.id),
            title=(game.name or '').strip(),
            category=MediaCategory.GAME,
            source_id=self.id,
            creator=', '.join(developers) or None,
            year=parse_year(game.released),
            # RAWG reports 0 for unrated games
            rating=game.rating * 2 if game.rating else None,
            rating_count=game.ratings_count,
            popularity_metric=popularity,
            image=game.background_image,
            description=clean(game.description_raw),
            url=f"https://rawg.io/games/{game.slug or game.id}",
            genres=[g.name for g in game.genres],
            external_ids={'rawg': str(game.id)},
            extra={
                'metacritic': game.metacritic,
                'released': game.released,
                'website': game.website,
            },
        )
