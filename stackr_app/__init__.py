# Load environment variables FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

import time
import uuid
from flask import Flask, g, jsonify, request


def create_app(aggregator=None, settings=None):
    """
    Create and configure an instance of the Flask application.

    Args:
        aggregator: Pre-built SearchAggregator (tests inject one with fake adapters)
        settings: Settings; read from the environment when omitted
    """
    from .config import Settings
    from .log import configure_logging, debug_log_event, log
    from .adapters import build_default_adapters
    from .search.aggregator import SearchAggregator
    from .search.cache import SearchCache
    from .routes.search_api import search_api_bp
    from .routes.validators import set_allowed_sources

    settings = settings or Settings.from_env()

    app = Flask(__name__, instance_relative_config=True)

    # =============================================================================
    # CONFIGURATION
    # =============================================================================
    app.json.sort_keys = False
    app.config.from_mapping(
        HOST=settings.host,
        PORT=settings.port,
        DEBUG=settings.debug,
        STACKR_DEFAULT_LIMIT=settings.default_limit,
    )

    configure_logging(settings.log_dir, settings.debug_logging)

    # =============================================================================
    # SEARCH AGGREGATOR
    # =============================================================================
    if aggregator is None:
        aggregator = SearchAggregator(
            build_default_adapters(settings),
            cache=SearchCache(ttl=settings.cache_ttl, max_size=settings.cache_max_size),
            branch_timeout=settings.adapter_timeout,
            default_limit=settings.default_limit,
        )
    app.extensions['stackr_aggregator'] = aggregator
    set_allowed_sources(list(aggregator.adapters.keys()))

    # =============================================================================
    # REQUEST IDS & DEBUG EVENTS
    # =============================================================================
    @app.before_request
    def assign_request_id():
        g.request_id = uuid.uuid4().hex[:12]
        g.request_start = time.time()

    @app.after_request
    def debug_request_log(response):
        duration_ms = None
        start_time = getattr(g, 'request_start', None)
        if start_time:
            duration_ms = int((time.time() - start_time) * 1000)
        debug_log_event({
            'event': 'request',
            'request_id': getattr(g, 'request_id', None),
            'method': request.method,
            'path': request.path,
            'query': request.query_string.decode('utf-8', errors='ignore'),
            'status': response.status_code,
            'duration_ms': duration_ms,
            'remote_addr': request.remote_addr,
        })
        return response

    @app.teardown_request
    def debug_exception_log(error=None):
        if not error:
            return
        debug_log_event({
            'event': 'exception',
            'request_id': getattr(g, 'request_id', None),
            'path': request.path,
            'error_type': error.__class__.__name__,
            'error': str(error),
        })

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found', 'code': 'not_found'}), 404

    app.register_blueprint(search_api_bp)

    log(f"Stackr ready ({len(aggregator.adapters)} sources)")
    return app
