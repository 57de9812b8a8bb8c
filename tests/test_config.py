import pytest

from stackr_app.config import Settings
from stackr_app.search.errors import ConfigurationError


def test_defaults_from_empty_env():
    settings = Settings.from_env({})

    assert settings.tmdb_api_key is None
    assert settings.adapter_timeout == 5.0
    assert settings.cache_ttl == 1800
    assert settings.cache_max_size == 1000
    assert settings.default_limit == 20
    assert settings.debug_logging is True
    assert settings.port == 5000


def test_reads_environment():
    settings = Settings.from_env({
        "TMDB_API_KEY": " abc ",
        "STACKR_ADAPTER_TIMEOUT": "3.5",
        "STACKR_CACHE_MAX_SIZE": "50",
        "DEBUG_LOGGING": "false",
        "FLASK_DEBUG": "yes",
        "STACKR_LOG_DIR": "/tmp/stackr-logs",
    })

    assert settings.tmdb_api_key == "abc"
    assert settings.adapter_timeout == 3.5
    assert settings.cache_max_size == 50
    assert settings.debug_logging is False
    assert settings.debug is True
    assert settings.log_dir == "/tmp/stackr-logs"


@pytest.mark.parametrize("name,value", [
    ("STACKR_ADAPTER_TIMEOUT", "fast"),
    ("STACKR_CACHE_MAX_SIZE", "0"),
    ("FLASK_PORT", "http"),
])
def test_invalid_numbers_raise(name, value):
    with pytest.raises(ConfigurationError):
        Settings.from_env({name: value})
