"""
Runtime settings read from the environment (.env is loaded by the package).

    TMDB_API_KEY, OMDB_API_KEY, RAWG_API_KEY   - adapter skipped when unset
    GOOGLE_BOOKS_API_KEY                       - optional
    STACKR_ADAPTER_TIMEOUT                     - seconds per adapter branch (5.0)
    STACKR_CACHE_TTL / STACKR_CACHE_MAX_SIZE   - search cache (1800s / 1000)
    STACKR_DEFAULT_LIMIT                       - results per search (20)
    STACKR_LOG_DIR                             - log directory (./instance)
    DEBUG_LOGGING                              - JSON debug events (true)
    FLASK_HOST / FLASK_PORT / FLASK_DEBUG      - dev server
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .search.errors import ConfigurationError

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in TRUE_VALUES


def _number(env: Mapping[str, str], name: str, default, cast, minimum):
    value = env.get(name)
    if value is None or value.strip() == '':
        return default
    try:
        number = cast(value.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if number < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {number}")
    return number


def _text(env: Mapping[str, str], name: str) -> Optional[str]:
    value = (env.get(name) or '').strip()
    return value or None


@dataclass
class Settings:
    tmdb_api_key: Optional[str] = None
    omdb_api_key: Optional[str] = None
    rawg_api_key: Optional[str] = None
    google_books_api_key: Optional[str] = None

    adapter_timeout: float = 5.0
    cache_ttl: float = 1800
    cache_max_size: int = 1000
    default_limit: int = 20

    log_dir: str = os.path.join(BASE_DIR, 'instance')
    debug_logging: bool = True

    host: str = '127.0.0.1'
    port: int = 5000
    debug: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Raises:
            ConfigurationError: A numeric variable does not parse or is out of range
        """
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            tmdb_api_key=_text(env, 'TMDB_API_KEY'),
            omdb_api_key=_text(env, 'OMDB_API_KEY'),
            rawg_api_key=_text(env, 'RAWG_API_KEY'),
            google_books_api_key=_text(env, 'GOOGLE_BOOKS_API_KEY'),
            adapter_timeout=_number(env, 'STACKR_ADAPTER_TIMEOUT', defaults.adapter_timeout, float, 0.1),
            cache_ttl=_number(env, 'STACKR_CACHE_TTL', defaults.cache_ttl, float, 0),
            cache_max_size=_number(env, 'STACKR_CACHE_MAX_SIZE', defaults.cache_max_size, int, 1),
            default_limit=_number(env, 'STACKR_DEFAULT_LIMIT', defaults.default_limit, int, 1),
            log_dir=_text(env, 'STACKR_LOG_DIR') or defaults.log_dir,
            debug_logging=_flag(env, 'DEBUG_LOGGING', defaults.debug_logging),
            host=_text(env, 'FLASK_HOST') or defaults.host,
            port=_number(env, 'FLASK_PORT', defaults.port, int, 1),
            debug=_flag(env, 'FLASK_DEBUG', defaults.debug),
        )
