"""Exceptions raised by the search pipeline and its source adapters."""

from typing import Optional


class SearchError(Exception):
    """Base class for every error raised by the search core."""


class ConfigurationError(SearchError):
    """Raised when settings cannot be parsed from the environment."""


class AdapterError(SearchError):
    """
    A source adapter could not produce results.

    Raised by ``BaseSourceAdapter.fetch()``; ``search()`` swallows it.
    """

    def __init__(self, source_id: str, message: str, status_code: Optional[int] = None):
        self.source_id = source_id
        self.status_code = status_code
        super().__init__(f"{source_id}: {message}")


class TransportError(AdapterError):
    """Network failure, timeout or non-2xx response."""


class ParseError(AdapterError):
    """Malformed JSON or a response envelope that fails its schema."""
