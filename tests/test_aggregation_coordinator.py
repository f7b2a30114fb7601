import asyncio
import time

import pytest

from property_intel.adapters import AdapterRegistry, CachingAdapter, FakeAdapter
from property_intel.adapters.base import ProviderAdapter
from property_intel.cache import GeoCache
from property_intel.categories import CategoryID
from property_intel.coordinator import AggregationCoordinator
from property_intel.errors import ConfigurationError, ErrorKind
from property_intel.fallback import generate_fallback
from property_intel.models import FALLBACK_SOURCE, DataQuality, ProviderDescriptor, Query
from property_intel.payloads import WeatherData

CAPE_TOWN = Query(-33.9, 18.4, "123 Main St")


def _desc(name, category, timeout=1.0, weight=0.8):
    return ProviderDescriptor(name=name, category=category, timeout=timeout, reliability_weight=weight)


class CrashingAdapter(ProviderAdapter):
    async def fetch(self, query):
        raise RuntimeError("boom")


class WrongTypeAdapter(ProviderAdapter):
    async def fetch(self, query):
        return {"not": "a payload"}


def test_cape_town_scenario():
    registry = AdapterRegistry(
        [
            FakeAdapter(_desc("crime_src", CategoryID.CRIME), delay=0.05),
            FakeAdapter(_desc("schools_src", CategoryID.SCHOOLS, timeout=0.2), delay=1.0),
            FakeAdapter(_desc("weather_src", CategoryID.WEATHER), delay=0.08),
        ]
    ).freeze()
    coordinator = AggregationCoordinator(registry)

    started = time.perf_counter()
    profile, outcomes = coordinator.aggregate_with_outcomes_sync(CAPE_TOWN, ["crime", "schools", "weather"])
    elapsed = time.perf_counter() - started

    assert profile.summary.completeness == 67
    assert list(profile[CategoryID.SCHOOLS].sources) == [FALLBACK_SOURCE]
    assert profile["crime"].sources == ("crime_src",)
    assert profile["weather"].sources == ("weather_src",)
    # bounded by the slowest timeout, not the sum of delays
    assert 0.18 <= elapsed < 0.6
    assert profile.summary.fallback_categories == (CategoryID.SCHOOLS,)

    schools = profile[CategoryID.SCHOOLS]
    assert schools.confidence == 40
    assert schools.data_quality == DataQuality.POOR
    assert schools.value == generate_fallback(CategoryID.SCHOOLS, CAPE_TOWN)

    errors = {o.provider: o.error for o in outcomes}
    assert errors == {"crime_src": None, "schools_src": ErrorKind.TIMEOUT, "weather_src": None}


def test_failures_are_isolated():
    registry = AdapterRegistry(
        [
            FakeAdapter(_desc("crime_src", CategoryID.CRIME)),
            FakeAdapter(_desc("schools_src", CategoryID.SCHOOLS), fail_with=ErrorKind.UNAVAILABLE),
            CrashingAdapter(_desc("flood_src", CategoryID.FLOOD)),
            FakeAdapter(_desc("fire_src", CategoryID.FIRE)),
            WrongTypeAdapter(_desc("storm_src", CategoryID.STORM)),
        ]
    ).freeze()
    coordinator = AggregationCoordinator(registry)
    profile, outcomes = coordinator.aggregate_with_outcomes_sync(
        CAPE_TOWN, ["crime", "schools", "flood", "fire", "storm"]
    )

    assert len(profile) == 5
    for category in ("schools", "flood", "storm"):
        assert profile[category].sources == (FALLBACK_SOURCE,)
    assert profile["crime"].sources == ("crime_src",)
    assert profile["fire"].sources == ("fire_src",)

    kinds = {o.provider: o.error for o in outcomes}
    assert kinds["schools_src"] == ErrorKind.UNAVAILABLE
    assert kinds["flood_src"] == ErrorKind.UNAVAILABLE
    assert kinds["storm_src"] == ErrorKind.INVALID_RESPONSE


def test_adapters_run_in_parallel():
    categories = [CategoryID.CRIME, CategoryID.SCHOOLS, CategoryID.DEMOGRAPHICS, CategoryID.FIRE, CategoryID.FLOOD]
    registry = AdapterRegistry(
        [FakeAdapter(_desc(f"src_{c}", c), delay=0.1) for c in categories]
    ).freeze()
    started = time.perf_counter()
    AggregationCoordinator(registry).aggregate_sync(CAPE_TOWN, categories)
    assert time.perf_counter() - started < 0.4


def test_invalid_category_rejected_before_fan_out():
    adapter = FakeAdapter(_desc("crime_src", CategoryID.CRIME))
    coordinator = AggregationCoordinator(AdapterRegistry([adapter]).freeze())
    with pytest.raises(ConfigurationError):
        coordinator.aggregate_sync(CAPE_TOWN, ["crime", "volcano"])
    with pytest.raises(ConfigurationError):
        coordinator.aggregate_sync(CAPE_TOWN, [])
    assert adapter.calls == 0


def test_category_without_adapter_falls_back():
    coordinator = AggregationCoordinator(AdapterRegistry().freeze())
    profile = coordinator.aggregate_sync(CAPE_TOWN, ["market"])
    assert profile["market"].is_fallback
    assert profile.summary.completeness == 0
    assert profile.summary.data_quality == DataQuality.POOR


def test_preferred_source_supplies_value():
    def weather(temp):
        return lambda category, query: WeatherData(
            temperature_c=temp, humidity=50, wind_kmh=10.0, description="clear"
        )

    registry = AdapterRegistry(
        [
            FakeAdapter(_desc("low", CategoryID.WEATHER, weight=0.6), payload_fn=weather(10.0)),
            FakeAdapter(_desc("high", CategoryID.WEATHER, weight=0.9), delay=0.05, payload_fn=weather(20.0)),
            FakeAdapter(_desc("down", CategoryID.WEATHER, weight=1.0), fail_with=ErrorKind.TIMEOUT),
            FakeAdapter(_desc("tie", CategoryID.WEATHER, weight=0.9), payload_fn=weather(30.0)),
        ]
    ).freeze()
    field = AggregationCoordinator(registry).aggregate_sync(CAPE_TOWN, ["weather"])["weather"]
    # highest reliability wins; registration order breaks the tie
    assert field.value.temperature_c == 20.0
    assert field.sources == ("low", "high", "tie")
    assert field.completeness == 75


def test_deadline_keeps_completed_outcomes():
    registry = AdapterRegistry(
        [
            FakeAdapter(_desc("fast", CategoryID.CRIME, timeout=5.0), delay=0.01),
            FakeAdapter(_desc("slow", CategoryID.SCHOOLS, timeout=5.0), delay=2.0),
        ]
    ).freeze()
    coordinator = AggregationCoordinator(registry)
    started = time.perf_counter()
    profile, outcomes = coordinator.aggregate_with_outcomes_sync(CAPE_TOWN, ["crime", "schools"], deadline=0.1)
    assert time.perf_counter() - started < 1.0
    assert profile["crime"].sources == ("fast",)
    assert profile["schools"].is_fallback
    slow = [o for o in outcomes if o.provider == "slow"][0]
    assert slow.error == ErrorKind.TIMEOUT
    assert not slow.succeeded


def test_cache_serves_second_request():
    inner = FakeAdapter(_desc("weather_src", CategoryID.WEATHER))
    cache = GeoCache()
    registry = AdapterRegistry([CachingAdapter(inner, cache)]).freeze()
    coordinator = AggregationCoordinator(registry)

    first, outcomes = coordinator.aggregate_with_outcomes_sync(CAPE_TOWN, ["weather"])
    assert not outcomes[0].cached
    second, outcomes = coordinator.aggregate_with_outcomes_sync(Query(-33.9005, 18.4, "123 Main St"), ["weather"])
    assert outcomes[0].cached
    assert inner.calls == 1
    assert second["weather"].value == first["weather"].value
    assert cache.stats()["hits"] == 1


def test_failed_fetch_is_not_cached():
    inner = FakeAdapter(_desc("weather_src", CategoryID.WEATHER), fail_with=ErrorKind.UNAVAILABLE)
    cache = GeoCache()
    coordinator = AggregationCoordinator(AdapterRegistry([CachingAdapter(inner, cache)]).freeze())
    coordinator.aggregate_sync(CAPE_TOWN, ["weather"])
    assert len(cache) == 0


def test_aggregate_inside_running_loop():
    registry = AdapterRegistry([FakeAdapter(_desc("crime_src", CategoryID.CRIME))]).freeze()
    coordinator = AggregationCoordinator(registry)

    async def run():
        return await coordinator.aggregate(CAPE_TOWN, ["crime"])

    profile = asyncio.run(run())
    assert profile.summary.completeness == 100
    assert profile["crime"].confidence > 40


def test_wrong_typed_payload_is_not_cached():
    inner = WrongTypeAdapter(_desc("weather_src", CategoryID.WEATHER))
    cache = GeoCache()
    coordinator = AggregationCoordinator(AdapterRegistry([CachingAdapter(inner, cache)]).freeze())
    _, outcomes = coordinator.aggregate_with_outcomes_sync(CAPE_TOWN, ["weather"])
    assert outcomes[0].error == ErrorKind.INVALID_RESPONSE
    assert len(cache) == 0
    _, outcomes = coordinator.aggregate_with_outcomes_sync(CAPE_TOWN, ["weather"])
    assert not outcomes[0].cached
    assert cache.stats()["hits"] == 0


def test_overlapping_runs_keep_their_own_outcomes():
    registry = AdapterRegistry(
        [
            FakeAdapter(_desc("slow", CategoryID.SCHOOLS), delay=0.2),
            FakeAdapter(_desc("fast", CategoryID.CRIME), delay=0.01),
        ]
    ).freeze()
    coordinator = AggregationCoordinator(registry)

    async def run():
        slow = asyncio.create_task(coordinator.aggregate_with_outcomes(CAPE_TOWN, ["schools"]))
        await asyncio.sleep(0.01)
        fast = asyncio.create_task(coordinator.aggregate_with_outcomes(CAPE_TOWN, ["crime"]))
        return await slow, await fast

    (slow_profile, slow_outcomes), (fast_profile, fast_outcomes) = asyncio.run(run())
    assert [o.provider for o in slow_outcomes] == ["slow"]
    assert [o.provider for o in fast_outcomes] == ["fast"]
    assert list(slow_profile) == [CategoryID.SCHOOLS]
    assert list(fast_profile) == [CategoryID.CRIME]
    assert not hasattr(coordinator, "last_outcomes")


@pytest.mark.parametrize("deadline", [0, -1.0, "soon", float("nan")])
def test_invalid_deadline_is_configuration_error(deadline):
    adapter = FakeAdapter(_desc("crime_src", CategoryID.CRIME))
    coordinator = AggregationCoordinator(AdapterRegistry([adapter]).freeze())
    with pytest.raises(ConfigurationError):
        coordinator.aggregate_sync(CAPE_TOWN, ["crime"], deadline=deadline)
    assert adapter.calls == 0
