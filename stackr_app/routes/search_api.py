"""
================================================================================
Stackr - Search API Routes
================================================================================
Flask blueprint exposing the search aggregator.

ENDPOINTS:
  GET /api/search                         - Ranked cross-source search
  GET /api/search/sources                 - Registered source adapters
  GET /api/search/metrics                 - Search metrics and cache stats
  GET /api/search/health                  - Per-adapter health check
  GET /api/search/match                   - Fuzzy best match for a known title
  GET /api/search/item/<source>/<id>      - Detail lookup on one adapter

Errors are JSON: {"error": "...", "code": "..."}
================================================================================
"""

import asyncio
import logging
import threading

from flask import Blueprint, current_app, jsonify, request

from ..search.models import MediaCategory
from .validators import (
    MAX_YEAR,
    MIN_YEAR,
    build_search_options,
    parse_categories,
    parse_int,
    sanitize_string,
    validate_query,
    validate_source_id,
)

logger = logging.getLogger(__name__)

search_api_bp = Blueprint('search_api', __name__)

# One event loop per worker thread; adapters keep one HTTP client per loop
_thread_state = threading.local()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def run_async(coro):
    """
    Run async coroutine in sync Flask context.

    Flask routes are sync, the aggregator is async. Each worker thread
    reuses its own loop so pooled connections survive between requests.
    """
    loop = getattr(_thread_state, 'loop', None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        _thread_state.loop = loop

    return loop.run_until_complete(coro)


def get_aggregator():
    return current_app.extensions['stackr_aggregator']


def error_response(message: str, code: str, status: int = 400):
    return jsonify({'error': message, 'code': code}), status


# =============================================================================
# SEARCH ROUTES
# =============================================================================

@search_api_bp.route('/api/search', methods=['GET'])
def search():
    """
    Search every source serving the requested categories.

    Query:
        q           - search text (2+ characters)
        categories  - comma separated (movie,tv,book,game,music-track)
        limit, sort, diversify, language, market,
        min_year, max_year, genre, explicit

    Returns:
        {
            "query": "dune",
            "results": [{"title": "Dune", "scores": {...}, ...}],
            "total_count": 37,
            "from_cache": false,
            "succeeded_sources": ["google_books", "tmdb"],
            "failed_sources": [],
            "all_failed": false
        }
    """
    query, error = validate_query(request.args.get('q'))
    if error:
        return error_response(error, 'invalid_query')

    categories, error = parse_categories(request.args.get('categories'))
    if error:
        return error_response(error, 'invalid_category')

    options, error = build_search_options(
        request.args, current_app.config.get('STACKR_DEFAULT_LIMIT', 20)
    )
    if error:
        return error_response(error, 'invalid_option')

    try:
        answer = run_async(get_aggregator().search(query, categories=categories, options=options))
    except Exception as e:
        logger.error(f"Search failed for '{query}': {e}")
        return error_response(str(e), 'search_failed', 500)

    return jsonify(answer.to_dict())


@search_api_bp.route('/api/search/sources', methods=['GET'])
def get_sources():
    """
    Registered source adapters.

    Returns:
        {"sources": [{"id": "tmdb", "name": "TMDB", "categories": ["movie", "tv"]}], "count": 1}
    """
    sources = get_aggregator().get_available_adapters()
    return jsonify({'sources': sources, 'count': len(sources)})


@search_api_bp.route('/api/search/metrics', methods=['GET'])
def get_metrics():
    aggregator = get_aggregator()
    return jsonify({
        'metrics': aggregator.metrics.snapshot(),
        'cache': aggregator.cache.stats() if aggregator.cache is not None else None,
    })


@search_api_bp.route('/api/search/health', methods=['GET'])
def health_check():
    """
    Check health of all source adapters.

    Returns:
        {
            "healthy": true,
            "sources": {"tmdb": true, "omdb": false, ...},
            "healthy_count": 6,
            "total_count": 7
        }
    """
    try:
        health = run_async(get_aggregator().health_check())
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return error_response(str(e), 'health_check_failed', 500)

    healthy_count = sum(1 for status in health.values() if status)
    return jsonify({
        'healthy': healthy_count > 0,
        'sources': health,
        'healthy_count': healthy_count,
        'total_count': len(health),
    })


@search_api_bp.route('/api/search/match', methods=['GET'])
def match_title():
    """
    Resolve a known title to its best match in one category.

    Query:
        title, category, year (optional)

    Returns:
        {"match": {...}} or 404
    """
    title, error = validate_query(request.args.get('title'))
    if error:
        return error_response(error, 'invalid_title')

    try:
        category = MediaCategory.parse(request.args.get('category', ''))
    except ValueError:
        return error_response("Unknown or missing category", 'invalid_category')

    year, error = parse_int(request.args.get('year'), 'year', MIN_YEAR, MAX_YEAR)
    if error:
        return error_response(error, 'invalid_option')

    try:
        match = run_async(get_aggregator().find_best_match(title, category, year=year))
    except Exception as e:
        logger.error(f"Match failed for '{title}': {e}")
        return error_response(str(e), 'match_failed', 500)

    if not match:
        return error_response(f"No match for '{title}'", 'not_found', 404)

    return jsonify({'match': match.to_dict()})


@search_api_bp.route('/api/search/item/<source_id>/<path:item_id>', methods=['GET'])
def get_item(source_id, item_id):
    error = validate_source_id(source_id)
    if error:
        return error_response(error, 'invalid_source')

    item_id = sanitize_string(item_id, 100).strip()
    if not item_id:
        return error_response("Missing item ID", 'invalid_item')

    try:
        result = run_async(get_aggregator().get_by_id(source_id, item_id))
    except Exception as e:
        logger.error(f"Get by ID failed for {source_id}/{item_id}: {e}")
        return error_response(str(e), 'lookup_failed', 500)

    if not result:
        return error_response('Not found', 'not_found', 404)

    return jsonify({'item': result.to_dict()})
