"""
================================================================================
Stackr - Base Source Adapter
================================================================================
Abstract base class for every external search API.

Adapters call one vendor API and map its native schema into SearchResult:
  - Google Books (books)
  - iTunes Search (music tracks)
  - RAWG (games)
  - OMDB (movies, series)
  - TMDB (movies, series)
  - Steam Store + Reviews (games)
  - CheapShark (games)

Two entry points:
  fetch()  - raises TransportError / ParseError; used by the aggregator,
             which records failures per source
  search() - never raises; logs and returns [] on any failure
================================================================================
"""

import re
import asyncio
import logging
import weakref
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..search.errors import ParseError, TransportError
from ..search.models import MediaCategory, SearchOptions, SearchResult


logger = logging.getLogger(__name__)

SchemaT = TypeVar('SchemaT', bound=BaseModel)

_YEAR = re.compile(r'(\d{4})')


def parse_year(value: Any) -> Optional[int]:
    """
    First four-digit group of a date-ish value.

    Examples:
        "2010-07-16" -> 2010
        "2010–2013" -> 2010
        "N/A" -> None
    """
    if value is None:
        return None
    match = _YEAR.search(str(value))
    return int(match.group(1)) if match else None


def parse_number(value: Any) -> Optional[float]:
    """Float from vendor strings like "8.8", "1,234,567" or "N/A"."""
    if value is None or value == '':
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(',', '').strip())
    except ValueError:
        return None


def clean(value: Optional[str]) -> Optional[str]:
    """Strip a vendor string, mapping ""/"N/A" to None."""
    if value is None:
        return None
    value = str(value).strip()
    if not value or value.upper() == 'N/A':
        return None
    return value


class BaseSourceAdapter(ABC):
    """
    Abstract base class for source adapters.

    All adapters must implement:
      - fetch(): Search by free-text query, raising on failure

    Adapters may implement:
      - get_by_id(): Detail lookup by the adapter's own id

    The HTTP client is created lazily, one per event loop (Flask worker
    threads each drive their own loop). An injected client is always used
    as-is.
    """

    # Adapter identification
    id: str = "base"
    name: str = "Base Adapter"

    # API configuration
    base_url: str = ""

    # Media categories this adapter can return
    categories: Tuple[MediaCategory, ...] = ()

    # Request timeout (seconds)
    timeout: float = 5.0

    # Fan-out budget for the whole fetch; None uses the aggregator default
    branch_timeout: Optional[float] = None

    # Attempts per request (1 = no retries)
    max_retries: int = 1
    retry_delay: float = 0.5

    user_agent: str = "Stackr/1.0 (media search)"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None
    ):
        """
        Args:
            client: Pre-built HTTP client (tests pass one with MockTransport)
            timeout: Overrides the class-level request timeout
        """
        if timeout is not None:
            self.timeout = timeout
        self._injected_client = client
        self._clients: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, httpx.AsyncClient]" = (
            weakref.WeakKeyDictionary()
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client for the running event loop."""
        if self._injected_client is not None:
            return self._injected_client

        loop = asyncio.get_running_loop()
        client = self._clients.get(loop)
        if client is None or client.is_closed:
            client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={
                    'User-Agent': self.user_agent,
                    'Accept': 'application/json'
                },
                follow_redirects=True
            )
            self._clients[loop] = client
        return client

    async def close(self):
        """Close the HTTP client owned by the running loop; forget the others."""
        if self._injected_client is not None:
            await self._injected_client.aclose()
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        client = self._clients.pop(loop, None) if loop is not None else None
        if client is not None:
            await client.aclose()
        self._clients.clear()

    async def _request(
        self,
        method: str,
        url: str,
        **kwargs
    ) -> Any:
        """
        Make an HTTP request and decode its JSON body.

        Args:
            method: HTTP method (GET, POST)
            url: Full URL
            **kwargs: Additional arguments for httpx

        Returns:
            Decoded JSON (dict or list)

        Raises:
            TransportError: Network failure, timeout or non-2xx status
            ParseError: Body is not valid JSON
        """
        client = await self._get_client()

        for attempt in range(self.max_retries):
            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                break

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if (status == 429 or status >= 500) and attempt < self.max_retries - 1:
                    logger.warning(
                        f"{self.id}: HTTP {status}, retry {attempt + 1}/{self.max_retries}"
                    )
                    await asyncio.sleep(self.retry_delay * (2 ** attempt))
                    continue
                raise TransportError(self.id, f"HTTP {status} from {url}", status_code=status) from e

            except httpx.RequestError as e:
                if attempt < self.max_retries - 1:
                    logger.warning(
                        f"{self.id}: Request error ({e!r}), "
                        f"retry {attempt + 1}/{self.max_retries}"
                    )
                    await asyncio.sleep(self.retry_delay)
                    continue
                raise TransportError(self.id, f"{e.__class__.__name__}: {e}") from e
        else:
            raise TransportError(self.id, "no request attempted (max_retries < 1)")

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(self.id, f"invalid JSON from {url}") from e

    # =========================================================================
    # PARSING HELPERS
    # =========================================================================

    def _validate(self, schema: Type[SchemaT], payload: Any) -> SchemaT:
        """Validate a response envelope; a mismatch fails the whole call."""
        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            raise ParseError(
                self.id, f"unexpected {schema.__name__} payload ({e.error_count()} errors)"
            ) from e

    def _map_items(
        self,
        items: Iterable[Any],
        mapper: Callable[[Any], Optional[SearchResult]]
    ) -> List[SearchResult]:
        """
        Map raw items, skipping (and logging) the ones that do not parse.

        mapper may return None for items that are valid but not wanted
        (e.g. an OMDB episode).
        """
        results = []
        for item in items:
            try:
                result = mapper(item)
            except (ValidationError, ValueError, TypeError, KeyError) as e:
                logger.warning(f"{self.id}: Skipping malformed item: {e!r}")
                continue
            if result is not None:
                results.append(result)
        return results

    # =========================================================================
    # ABSTRACT METHODS (must be implemented by adapters)
    # =========================================================================

    @abstractmethod
    async def fetch(
        self,
        query: str,
        options: SearchOptions
    ) -> List[SearchResult]:
        """
        Query the vendor API and map its answer.

        Args:
            query: Free-text query
            options: Limit, language, market...

        Returns:
            List of SearchResult ([] when the vendor reports no match)

        Raises:
            TransportError, ParseError
        """
        pass

    # =========================================================================
    # SAFE ENTRY POINTS
    # =========================================================================

    async def search(
        self,
        query: str,
        options: Optional[SearchOptions] = None
    ) -> List[SearchResult]:
        """
        Like fetch(), but never raises.

        Returns:
            List of SearchResult, [] on any failure
        """
        try:
            return await self.fetch(query, options or SearchOptions())
        except Exception as e:
            logger.error(f"{self.id}: Search failed for '{query}': {e}")
            return []

    async def get_by_id(self, item_id: str) -> Optional[SearchResult]:
        """
        Detail lookup by this adapter's own id.

        Returns:
            SearchResult or None (also when the adapter has no detail API)
        """
        logger.debug(f"{self.id}: get_by_id not supported")
        return None

    def __repr__(self):
        categories = ','.join(c.value for c in self.categories)
        return f"<{self.__class__.__name__}(id='{self.id}', categories={categories})>"
