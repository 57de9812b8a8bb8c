"""
================================================================================
Stackr - iTunes Search Adapter
================================================================================
REST client for the iTunes Search API (songs).

iTunes Features:
  - No authentication
  - No ratings and no play counts: popularity is estimated from track
    position and explicitness
  - 100x100 artwork URLs can be rewritten to any size

API Docs: https://performance-partners.apple.com/search-api
================================================================================
"""

from typing import List, Optional
import logging

from .base import BaseSourceAdapter, parse_year
from .schemas import ITunesSearchResponse, ITunesTrack
from ..search.models import MediaCategory, SearchOptions, SearchResult

logger = logging.getLogger(__name__)

MAX_RESULTS = 200

# Popularity estimate (no real play counts available)
POPULARITY_BASE = 30
POPULARITY_LEAD_TRACK_BONUS = 15
POPULARITY_EXPLICIT_BONUS = 5
POPULARITY_CAP = 100


def estimate_popularity(track_number: Optional[int], explicit: bool) -> int:
    """
    Rough popularity guess for a track.

    Early album tracks tend to be the singles; explicit versions tend to be
    the originals rather than radio edits.
    """
    score = POPULARITY_BASE
    if track_number is not None and track_number <= 3:
        score += POPULARITY_LEAD_TRACK_BONUS
    if explicit:
        score += POPULARITY_EXPLICIT_BONUS
    return min(score, POPULARITY_CAP)


def upscale_artwork(url: Optional[str]) -> Optional[str]:
    """100x100 artwork URL -> 600x600."""
    if not url:
        return None
    return url.replace('100x100bb', '600x600bb')


class ITunesAdapter(BaseSourceAdapter):
    """iTunes song search (music tracks)."""

    id = "itunes"
    name = "iTunes"
    base_url = "https://itunes.apple.com"
    categories = (MediaCategory.MUSIC_TRACK,)
    branch_timeout = 1.5

    async def fetch(self, query: str, options: SearchOptions) -> List[SearchResult]:
        params = {
            'term': query,
            'media': 'music',
            'entity': 'song',
            'limit': max(1, min(options.limit, MAX_RESULTS)),
            'country': options.market or 'US',
        }
        if not options.include_explicit:
            params['explicit'] = 'No'

        payload = await self._request("GET", f"{self.base_url}/search", params=params)
        envelope = self._validate(ITunesSearchResponse, payload)
        return self._map_items(envelope.results, self._parse_track)

    async def get_by_id(self, item_id: str) -> Optional[SearchResult]:
        """
        Look up a track by iTunes track id.

        Returns:
            SearchResult or None
        """
        try:
            payload = await self._request(
                "GET", f"{self.base_url}/lookup", params={'id': item_id, 'entity': 'song'}
            )
            envelope = self._validate(ITunesSearchResponse, payload)
            tracks = self._map_items(envelope.results, self._parse_track)
            return tracks[0] if tracks else None
        except Exception as e:
            logger.error(f"{self.id}: Get by ID failed for '{item_id}': {e}")
            return None

    def _parse_track(self, raw: dict) -> Optional[SearchResult]:
        """
        Parse an iTunes result into SearchResult.

        Returns:
            SearchResult, or None for non-song entries (collections, artists)
        """
        track = ITunesTrack.model_validate(raw)
        if track.kind and track.kind != 'song':
            return None

        explicit = track.trackExplicitness == 'explicit'

        return SearchResult(
            id=str(track.trackId),
            title=(track.trackName or '').strip(),
            category=MediaCategory.MUSIC_TRACK,
            source_id=self.id,
            creator=track.artistName,
            year=parse_year(track.releaseDate),
            popularity_metric=estimate_popularity(track.trackNumber, explicit),
            image=upscale_artwork(track.artworkUrl100),
            url=track.trackViewUrl,
            genres=[track.primaryGenreName] if track.primaryGenreName else [],
            explicit=explicit,
            external_ids={'itunes': str(track.trackId)},
            extra={
                'album': track.collectionName,
                'preview_url': track.previewUrl,
                'duration_ms': track.trackTimeMillis,
                'track_number': track.trackNumber,
            },
        )
