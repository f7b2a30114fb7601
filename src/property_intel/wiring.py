"""Startup wiring: settings -> frozen registry -> coordinator."""

from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

from .adapters import (
    AdapterRegistry,
    CachingAdapter,
    FakeAdapter,
    OpenAqAdapter,
    OpenDataAdapter,
    OverpassTransportAdapter,
    ProviderAdapter,
    UsgsEarthquakeAdapter,
    WttrWeatherAdapter,
)
from .adapters.open_data import PARSERS
from .cache import GeoCache
from .categories import CategoryID
from .config import Settings, get_settings
from .coordinator import AggregationCoordinator
from .models import ProviderDescriptor
from .scoring import ScoringPolicy

logger = logging.getLogger("pi.aggregate")

# reliability weights per live source
RELIABILITY: Dict[str, float] = {
    "usgs": 0.95,
    "wttr": 0.85,
    "openaq": 0.8,
    "overpass": 0.8,
    "open_data": 0.75,
    "demo": 0.7,
}


def _descriptor(name: str, category: CategoryID, settings: Settings, weight_key: str) -> ProviderDescriptor:
    return ProviderDescriptor(
        name=name,
        category=category,
        timeout=settings.default_timeout_s,
        reliability_weight=RELIABILITY[weight_key],
    )


def _live_adapters(settings: Settings, transport: Optional[httpx.AsyncBaseTransport]):
    retries = settings.http_retries
    for category in PARSERS:
        url = settings.endpoint_for(category)
        if url:
            yield OpenDataAdapter(
                _descriptor(f"open_data_{category}", category, settings, "open_data"),
                url,
                retries=retries,
                transport=transport,
            )
    yield UsgsEarthquakeAdapter(
        _descriptor("usgs", CategoryID.EARTHQUAKE, settings, "usgs"), retries=retries, transport=transport
    )
    yield OpenAqAdapter(
        _descriptor("openaq", CategoryID.AIR_QUALITY, settings, "openaq"), retries=retries, transport=transport
    )
    yield OverpassTransportAdapter(
        _descriptor("overpass", CategoryID.TRANSPORTATION, settings, "overpass"),
        retries=retries,
        transport=transport,
    )
    yield WttrWeatherAdapter(
        _descriptor("wttr", CategoryID.WEATHER, settings, "wttr"), retries=retries, transport=transport
    )


def _demo_adapters(settings: Settings):
    for idx, category in enumerate(CategoryID):
        yield FakeAdapter(
            _descriptor(f"demo_{category}", category, settings, "demo"),
            delay=0.01 * (idx % 4),
        )


def build_default_registry(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AdapterRegistry:
    settings = settings or get_settings()
    adapters = _demo_adapters(settings) if settings.demo else _live_adapters(settings, transport)

    caches: Dict[CategoryID, GeoCache] = {}
    registry = AdapterRegistry()
    for adapter in adapters:
        wrapped: ProviderAdapter = adapter
        if settings.cache_enabled and adapter.category in settings.cached_categories:
            cache = caches.get(adapter.category)
            if cache is None:
                cache = caches[adapter.category] = GeoCache(
                    ttl=settings.cache_ttl_s,
                    epsilon=settings.cache_epsilon_deg,
                    max_entries=settings.cache_max_entries,
                )
            wrapped = CachingAdapter(adapter, cache)
        registry.register(wrapped)
    logger.debug("registered %d adapters (demo=%s)", len(registry), settings.demo)
    return registry.freeze()


def build_coordinator(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AggregationCoordinator:
    settings = settings or get_settings()
    policy = ScoringPolicy(fallback_confidence=settings.fallback_confidence)
    return AggregationCoordinator(build_default_registry(settings, transport), policy=policy)
