"""Deterministic synthetic payloads for categories whose sources all failed.

Values are drawn from a `random.Random` seeded by the category and the
query, so the same query always yields the same payload. Nothing here
touches the network.
"""

from __future__ import annotations

import hashlib
import random
from typing import Callable, Dict

from .categories import CategoryID
from .errors import ConfigurationError
from .models import Query
from .payloads import (
    AirQuality,
    CrimeData,
    CrimeIncident,
    DemographicsData,
    DroughtRisk,
    EarthquakeRisk,
    FireRisk,
    FloodRisk,
    MarketData,
    MonthlyClimate,
    Payload,
    Pollutants,
    School,
    SchoolData,
    StormRisk,
    TransportationData,
    WeatherData,
)

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def fallback_seed(category: CategoryID, query: Query) -> int:
    key = f"{category}:{query.latitude:.6f}:{query.longitude:.6f}:{query.address_hint.lower()}"
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


def _uniform(rng: random.Random, low: float, span: float) -> float:
    return low + rng.random() * span


def _crime(rng: random.Random, query: Query) -> CrimeData:
    base_rate = round(_uniform(rng, 10, 50), 2)
    incidents = tuple(
        CrimeIncident(
            type=kind,
            days_ago=rng.randint(0, 30),
            severity=rng.choice(("low", "medium", "high")),
            distance_m=rng.randint(0, 2000),
        )
        for kind in ("Theft", "Burglary", "Vandalism")
    )
    return CrimeData(
        total_incidents=round(base_rate * 12),
        crime_rate=base_rate,
        safety_score=min(100, round((100 - base_rate) * 0.8 + rng.random() * 20)),
        recent_incidents=incidents,
        city_average=round(base_rate * 1.2, 2),
        national_average=round(base_rate * 1.5, 2),
    )


def _schools(rng: random.Random, query: Query) -> SchoolData:
    schools = (
        School(
            name="Local Primary School",
            type="primary",
            rating=float(rng.randint(3, 8)),
            distance_m=rng.randint(500, 2500),
            address="Nearby School Street",
        ),
        School(
            name="Community High School",
            type="secondary",
            rating=float(rng.randint(3, 8)),
            distance_m=rng.randint(1000, 4000),
            address="Education Avenue",
        ),
    )
    average = round(sum(s.rating for s in schools) / len(schools), 1)
    return SchoolData(nearby_schools=schools, average_rating=average, school_district="Local District")


def _demographics(rng: random.Random, query: Query) -> DemographicsData:
    return DemographicsData(
        population=rng.randint(10_000, 60_000),
        median_age=rng.randint(30, 50),
        median_income=rng.randint(150_000, 350_000),
        employment_rate=rng.randint(60, 90),
        high_school_pct=rng.randint(40, 80),
        university_pct=rng.randint(15, 45),
        families_pct=rng.randint(40, 80),
        singles_pct=rng.randint(30, 70),
    )


def _earthquake(rng: random.Random, query: Query) -> EarthquakeRisk:
    return EarthquakeRisk(level="low", recent_activity=(), frequency_per_year=round(rng.random() * 2, 2))


def _flood(rng: random.Random, query: Query) -> FloodRisk:
    return FloodRisk(
        level="low",
        flood_zone="Zone X (minimal flood risk)",
        years_since_last_flood=None,
        drainage_quality=rng.choice(("good", "fair")),
    )


def _fire(rng: random.Random, query: Query) -> FireRisk:
    # Dry summer months for the hemisphere.
    if query.latitude < 0:
        months = ("Dec", "Jan", "Feb", "Mar")
    else:
        months = ("Jun", "Jul", "Aug", "Sep")
    return FireRisk(level="low", vegetation="Urban/Suburban", nearby_fires=0, fire_season_months=months)


def _storm(rng: random.Random, query: Query) -> StormRisk:
    average = round(_uniform(rng, 10, 15), 1)
    return StormRisk(
        cyclone_risk="none",
        tornado_risk="low",
        hail_risk=rng.choice(("low", "moderate")),
        average_wind_kmh=average,
        max_wind_kmh=round(average * _uniform(rng, 4, 3), 1),
        dominant_direction=rng.choice(("N", "NE", "E", "SE", "S", "SW", "W", "NW")),
        storm_season="summer",
    )


def _drought(rng: random.Random, query: Query) -> DroughtRisk:
    return DroughtRisk(
        current_status=rng.choice(("none", "mild")),
        historical_frequency=round(_uniform(rng, 0.1, 0.3), 2),
        water_security=rng.choice(("good", "fair")),
    )


def _air_quality(rng: random.Random, query: Query) -> AirQuality:
    aqi = rng.randint(25, 75)
    return AirQuality(
        aqi=aqi,
        level="Good" if aqi <= 50 else "Moderate",
        pollutants=Pollutants(
            pm25=float(rng.randint(5, 25)),
            pm10=float(rng.randint(10, 40)),
            o3=float(rng.randint(10, 50)),
            no2=float(rng.randint(5, 30)),
        ),
    )


def _transportation(rng: random.Random, query: Query) -> TransportationData:
    return TransportationData(
        nearest_station="Local Bus Stop",
        station_distance_m=rng.randint(200, 1200),
        station_type="Bus",
        walk_score=rng.randint(40, 80),
        bike_score=rng.randint(30, 60),
        traffic_level=rng.choice(("low", "medium", "high")),
        commute_cbd_min=rng.randint(15, 45),
        commute_airport_min=rng.randint(30, 75),
    )


def _weather(rng: random.Random, query: Query) -> WeatherData:
    southern = query.latitude < 0
    monthly = []
    for idx, month in enumerate(MONTHS):
        # Warmest month is January in the south, July in the north.
        phase = idx if southern else (idx + 6) % 12
        seasonal = abs(6 - phase) / 6.0
        monthly.append(
            MonthlyClimate(
                month=month,
                average_temp=round(12 + 12 * seasonal + rng.random() * 2, 1),
                rainfall_mm=round(_uniform(rng, 10, 90), 1),
                humidity=rng.randint(50, 80),
            )
        )
    return WeatherData(
        temperature_c=round(_uniform(rng, 15, 10), 1),
        humidity=rng.randint(40, 80),
        wind_kmh=round(_uniform(rng, 5, 20), 1),
        description="Partly cloudy",
        monthly=tuple(monthly),
    )


def location_multiplier(lat: float, lon: float) -> float:
    if -26 < lat < -25.5 and 27.8 < lon < 28.3:
        return 1.8  # Sandton
    if -34 < lat < -33.8 and 18.3 < lon < 18.6:
        return 2.2  # Cape Town CBD
    if -29.9 < lat < -29.7 and 30.9 < lon < 31.1:
        return 1.4  # Durban
    return 1.0


def property_type_for(address: str) -> str:
    lowered = (address or "").lower()
    if "apartment" in lowered or "flat" in lowered:
        return "apartment"
    if "townhouse" in lowered:
        return "townhouse"
    if "office" in lowered or "commercial" in lowered:
        return "commercial"
    return "house"


TYPE_MULTIPLIERS = {"apartment": 0.7, "townhouse": 0.9, "commercial": 1.5, "house": 1.0}


def _market(rng: random.Random, query: Query) -> MarketData:
    multiplier = location_multiplier(query.latitude, query.longitude)
    multiplier *= TYPE_MULTIPLIERS[property_type_for(query.address_hint)]
    return MarketData(
        average_price=round(_uniform(rng, 1_500_000, 1_000_000) * multiplier),
        price_per_sqm=round(_uniform(rng, 8_000, 5_000) * multiplier),
        market_trend="stable",
        competitiveness=rng.randint(70, 100),
        rental_yield_pct=round(_uniform(rng, 4, 4), 2),
        appreciation_rate_pct=round(_uniform(rng, 2, 6), 2),
    )


_GENERATORS: Dict[CategoryID, Callable[[random.Random, Query], Payload]] = {
    CategoryID.CRIME: _crime,
    CategoryID.SCHOOLS: _schools,
    CategoryID.DEMOGRAPHICS: _demographics,
    CategoryID.EARTHQUAKE: _earthquake,
    CategoryID.FLOOD: _flood,
    CategoryID.FIRE: _fire,
    CategoryID.STORM: _storm,
    CategoryID.DROUGHT: _drought,
    CategoryID.AIR_QUALITY: _air_quality,
    CategoryID.TRANSPORTATION: _transportation,
    CategoryID.WEATHER: _weather,
    CategoryID.MARKET: _market,
}


def generate_fallback(category: CategoryID, query: Query) -> Payload:
    """Synthesize a plausible payload for `category` at `query`."""

    try:
        generator = _GENERATORS[CategoryID(category)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"No fallback generator for category: {category!r}") from None
    rng = random.Random(fallback_seed(CategoryID(category), query))
    return generator(rng, query)
