"""Lightweight request validation helpers."""

import re
from typing import Any, List, Mapping, Optional, Set, Tuple

from ..search.models import MediaCategory, SearchOptions, SortMode


# Allowed source IDs - populated at app init from the aggregator
_allowed_source_ids: Set[str] = set()

# Safe characters for source IDs (alphanumeric, dash, underscore)
SOURCE_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 200
MAX_LIMIT = 100
MIN_YEAR = 1800
MAX_YEAR = 2100

TRUE_VALUES = ('1', 'true', 'yes', 'on')
FALSE_VALUES = ('0', 'false', 'no', 'off')


def set_allowed_sources(source_ids: List[str]) -> None:
    """Set the list of valid source IDs (called during app init)."""
    global _allowed_source_ids
    _allowed_source_ids = set(source_ids)


def validate_source_id(source_id: Optional[str]) -> Optional[str]:
    """
    Validate a source ID against known sources and safe character pattern.

    Returns:
        None if valid, or error message string.
    """
    if not source_id:
        return "Missing source ID"

    if not SOURCE_ID_PATTERN.match(source_id):
        return "Invalid source ID format"

    if _allowed_source_ids and source_id not in _allowed_source_ids:
        return f"Unknown source: {source_id}"

    return None


def sanitize_string(value: Any, max_length: int = 500) -> str:
    """Remove control characters and limit length."""
    if not isinstance(value, str):
        return ""
    return ''.join(c for c in value if c >= ' ')[:max_length]


def validate_query(query: Optional[str]) -> Tuple[str, Optional[str]]:
    """
    Sanitize a search query.

    Returns:
        Tuple of (sanitized_query, error_or_none)
    """
    query = sanitize_string(query or '', MAX_QUERY_LENGTH).strip()
    if len(query) < MIN_QUERY_LENGTH:
        return query, f"Query must be at least {MIN_QUERY_LENGTH} characters"
    return query, None


def parse_categories(raw: Optional[str]) -> Tuple[Optional[List[MediaCategory]], Optional[str]]:
    """
    Parse "movie,book" (plural UI forms accepted) into categories.

    Returns:
        Tuple of (categories or None for all, error_or_none)
    """
    if not raw or not raw.strip():
        return None, None

    categories = []
    for value in raw.split(','):
        value = value.strip()
        if not value:
            continue
        try:
            category = MediaCategory.parse(value)
        except ValueError:
            return None, f"Unknown category: {value}"
        if category not in categories:
            categories.append(category)
    return categories or None, None


def parse_int(
    value: Optional[str],
    name: str,
    minimum: int,
    maximum: int
) -> Tuple[Optional[int], Optional[str]]:
    """Optional bounded integer parameter."""
    if value is None or value == '':
        return None, None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None, f"Invalid {name}"
    if number < minimum or number > maximum:
        return None, f"{name} must be between {minimum} and {maximum}"
    return number, None


def parse_bool(value: Optional[str], name: str, default: bool) -> Tuple[bool, Optional[str]]:
    if value is None or value == '':
        return default, None
    value = value.strip().lower()
    if value in TRUE_VALUES:
        return True, None
    if value in FALSE_VALUES:
        return False, None
    return default, f"Invalid {name}"


def build_search_options(
    args: Mapping[str, str],
    default_limit: int = 20
) -> Tuple[Optional[SearchOptions], Optional[str]]:
    """
    Build SearchOptions from query-string arguments.

    Returns:
        Tuple of (options, error_or_none)
    """
    limit, error = parse_int(args.get('limit'), 'limit', 1, MAX_LIMIT)
    if error:
        return None, error

    sort_value = (args.get('sort') or SortMode.MIXED.value).strip().lower()
    try:
        sort = SortMode(sort_value)
    except ValueError:
        return None, f"Unknown sort mode: {sort_value}"

    min_year, error = parse_int(args.get('min_year'), 'min_year', MIN_YEAR, MAX_YEAR)
    if error:
        return None, error
    max_year, error = parse_int(args.get('max_year'), 'max_year', MIN_YEAR, MAX_YEAR)
    if error:
        return None, error
    if min_year and max_year and min_year > max_year:
        return None, "min_year must not exceed max_year"

    include_explicit, error = parse_bool(args.get('explicit'), 'explicit', True)
    if error:
        return None, error
    diversify, error = parse_bool(args.get('diversify'), 'diversify', False)
    if error:
        return None, error

    language = sanitize_string(args.get('language') or 'en', 10).strip() or 'en'
    market = sanitize_string(args.get('market') or 'US', 5).strip().upper() or 'US'
    genre = sanitize_string(args.get('genre') or '', 50).strip() or None

    return SearchOptions(
        limit=limit or default_limit,
        language=language,
        market=market,
        sort=sort,
        include_explicit=include_explicit,
        min_year=min_year,
        max_year=max_year,
        genre=genre,
        diversify=diversify,
    ), None
