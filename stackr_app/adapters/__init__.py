"""
================================================================================
Stackr - Source Adapters
================================================================================
One adapter per external API, all mapping into SearchResult.

  google_books  books        key optional
  itunes        music        no key
  rawg          games        RAWG_API_KEY
  omdb          movies, tv   OMDB_API_KEY
  tmdb          movies, tv   TMDB_API_KEY
  steam         games        no key
  cheapshark    games        no key
================================================================================
"""

import logging
from typing import List

from .base import BaseSourceAdapter
from .cheapshark import CheapSharkAdapter
from .google_books import GoogleBooksAdapter
from .itunes import ITunesAdapter
from .omdb import OmdbAdapter
from .rawg import RawgAdapter
from .steam import SteamAdapter
from .tmdb import TmdbAdapter
from ..config import Settings

logger = logging.getLogger(__name__)


def build_default_adapters(settings: Settings) -> List[BaseSourceAdapter]:
    """
    Instantiate every adapter whose credentials are configured.

    Adapters needing a missing key are skipped with a warning.
    """
    timeout = settings.adapter_timeout
    adapters: List[BaseSourceAdapter] = [
        GoogleBooksAdapter(api_key=settings.google_books_api_key, timeout=timeout),
        ITunesAdapter(timeout=timeout),
    ]

    keyed = (
        ('TMDB_API_KEY', settings.tmdb_api_key, TmdbAdapter),
        ('OMDB_API_KEY', settings.omdb_api_key, OmdbAdapter),
        ('RAWG_API_KEY', settings.rawg_api_key, RawgAdapter),
    )
    for env_name, api_key, adapter_class in keyed:
        if api_key:
            adapters.append(adapter_class(api_key=api_key, timeout=timeout))
        else:
            logger.warning(f"{adapter_class.name} disabled: {env_name} not set")

    adapters.extend([
        SteamAdapter(timeout=timeout),
        CheapSharkAdapter(timeout=timeout),
    ])

    logger.info(f"Registered {len(adapters)} source adapters: {', '.join(a.id for a in adapters)}")
    return adapters


__all__ = [
    'BaseSourceAdapter', 'build_default_adapters',
    'CheapSharkAdapter', 'GoogleBooksAdapter', 'ITunesAdapter', 'OmdbAdapter',
    'RawgAdapter', 'SteamAdapter', 'TmdbAdapter',
]
