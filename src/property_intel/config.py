from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, FrozenSet, Optional

from .categories import DEFAULT_CACHED_CATEGORIES, CategoryID, parse_category
from .errors import ConfigurationError


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = str(raw).strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, float(default)))


# Open-data endpoints. `{lat}` and `{lon}` are substituted per query.
DEFAULT_ENDPOINTS: Dict[CategoryID, str] = {
    CategoryID.CRIME: "https://api.crimestats.gov.za/incidents?lat={lat}&lon={lon}&radius=5km",
    CategoryID.SCHOOLS: "https://api.education.gov.za/schools?lat={lat}&lon={lon}&radius=10km",
    CategoryID.DEMOGRAPHICS: "https://api.statssa.gov.za/census?lat={lat}&lon={lon}",
}


@dataclass(frozen=True)
class Settings:
    """Engine configuration read from the environment."""

    default_timeout_s: float = 5.0
    fallback_confidence: int = 40
    cache_enabled: bool = True
    cache_ttl_s: float = 24 * 60 * 60
    cache_epsilon_deg: float = 0.01
    cache_max_entries: int = 50
    cached_categories: FrozenSet[CategoryID] = DEFAULT_CACHED_CATEGORIES
    http_retries: int = 1
    demo: bool = False
    endpoints: Dict[CategoryID, str] = field(default_factory=lambda: dict(DEFAULT_ENDPOINTS))

    def endpoint_for(self, category: CategoryID) -> Optional[str]:
        return self.endpoints.get(category) or None

    @classmethod
    def from_env(cls) -> "Settings":
        endpoints = dict(DEFAULT_ENDPOINTS)
        for category in CategoryID:
            raw = os.getenv(f"PI_{category.name}_ENDPOINT")
            if raw is None:
                continue
            if raw.strip():
                endpoints[category] = raw.strip()
            else:
                # Empty value disables the open-data adapter for the category.
                endpoints.pop(category, None)

        cached_raw = os.getenv("PI_CACHED_CATEGORIES")
        if cached_raw is None:
            cached = DEFAULT_CACHED_CATEGORIES
        else:
            cached = frozenset(parse_category(c) for c in cached_raw.split(",") if c.strip())

        settings = cls(
            default_timeout_s=_env_float("PI_DEFAULT_TIMEOUT_S", 5.0),
            fallback_confidence=_env_int("PI_FALLBACK_CONFIDENCE", 40),
            cache_enabled=_env_bool("PI_CACHE_ENABLED", True),
            cache_ttl_s=_env_float("PI_CACHE_TTL_S", 24 * 60 * 60),
            cache_epsilon_deg=_env_float("PI_CACHE_EPSILON_DEG", 0.01),
            cache_max_entries=_env_int("PI_CACHE_MAX_ENTRIES", 50),
            cached_categories=cached,
            http_retries=_env_int("PI_HTTP_RETRIES", 1),
            demo=_env_bool("PI_DEMO", False),
            endpoints=endpoints,
        )
        if settings.default_timeout_s <= 0:
            raise ConfigurationError("PI_DEFAULT_TIMEOUT_S must be positive")
        if not 0 <= settings.fallback_confidence <= 100:
            raise ConfigurationError("PI_FALLBACK_CONFIDENCE must be in [0, 100]")
        if settings.cache_max_entries < 1:
            raise ConfigurationError("PI_CACHE_MAX_ENTRIES must be >= 1")
        return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Test helper to force env re-read."""

    get_settings.cache_clear()
