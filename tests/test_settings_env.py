import pytest

from property_intel.categories import CategoryID
from property_intel.config import Settings, get_settings, reset_settings_cache
from property_intel.errors import ConfigurationError


def _reset(monkeypatch, **env):
    for k, v in env.items():
        if v is None:
            monkeypatch.delenv(k, raising=False)
        else:
            monkeypatch.setenv(k, str(v))
    reset_settings_cache()


def test_defaults():
    settings = get_settings()
    assert settings == Settings()
    assert settings.default_timeout_s == 5.0
    assert settings.fallback_confidence == 40
    assert settings.cache_ttl_s == 86400
    assert settings.cache_epsilon_deg == 0.01
    assert settings.cache_max_entries == 50
    assert settings.cached_categories == frozenset({CategoryID.WEATHER})
    assert settings.endpoint_for(CategoryID.CRIME)
    assert settings.endpoint_for(CategoryID.WEATHER) is None


def test_env_overrides(monkeypatch):
    _reset(
        monkeypatch,
        PI_DEFAULT_TIMEOUT_S="2.5",
        PI_CACHE_ENABLED="off",
        PI_CACHE_MAX_ENTRIES="10",
        PI_CACHED_CATEGORIES="weather, air-quality",
        PI_DEMO="yes",
        PI_MARKET_ENDPOINT="http://market.local/?lat={lat}&lon={lon}",
        PI_CRIME_ENDPOINT="",
    )
    settings = get_settings()
    assert settings.default_timeout_s == 2.5
    assert settings.cache_enabled is False
    assert settings.cache_max_entries == 10
    assert settings.cached_categories == frozenset({CategoryID.WEATHER, CategoryID.AIR_QUALITY})
    assert settings.demo is True
    assert settings.endpoint_for(CategoryID.MARKET).startswith("http://market.local")
    assert settings.endpoint_for(CategoryID.CRIME) is None


def test_settings_are_cached_until_reset(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("PI_DEFAULT_TIMEOUT_S", "9")
    assert get_settings() is first
    reset_settings_cache()
    assert get_settings().default_timeout_s == 9.0


@pytest.mark.parametrize(
    "env",
    [
        {"PI_DEFAULT_TIMEOUT_S": "soon"},
        {"PI_DEFAULT_TIMEOUT_S": "0"},
        {"PI_FALLBACK_CONFIDENCE": "140"},
        {"PI_CACHE_MAX_ENTRIES": "0"},
        {"PI_CACHED_CATEGORIES": "volcano"},
    ],
)
def test_invalid_env_raises(monkeypatch, env):
    _reset(monkeypatch, **env)
    with pytest.raises(ConfigurationError):
        get_settings()
