"""Generic open-data adapter: URL template plus a per-category parser.

Expected response shapes follow the municipal/statistics endpoints the
dashboard queried; keys are camelCase as served.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import quote

import httpx

from ..categories import CategoryID
from ..errors import ConfigurationError
from ..models import ProviderDescriptor, Query
from ..payloads import (
    CrimeData,
    CrimeIncident,
    DemographicsData,
    DroughtRisk,
    FireRisk,
    FloodRisk,
    MarketData,
    Payload,
    School,
    SchoolData,
    StormRisk,
)
from .http import HttpJsonAdapter
from .http_client import require


def _items(data: Any, key: str) -> list:
    value = data.get(key) if isinstance(data, dict) else None
    return list(value) if isinstance(value, list) else []


def parse_crime(data: Dict[str, Any], query: Query) -> CrimeData:
    rate = float(require(data, "crimeRate"))
    incidents = tuple(
        CrimeIncident(
            type=str(item.get("type") or "Unknown"),
            days_ago=int(item.get("daysAgo", 0)),
            severity=str(item.get("severity") or "low").lower(),
            distance_m=int(round(float(item.get("distance", 0)))),
        )
        for item in _items(data, "incidents")
    )
    total = int(data.get("totalIncidents", len(incidents)))
    safety = data.get("safetyScore")
    if safety is None:
        safety = max(0, min(100, round(100 - rate)))
    comparison = data.get("comparison") or {}
    return CrimeData(
        total_incidents=total,
        crime_rate=rate,
        safety_score=int(safety),
        recent_incidents=incidents,
        city_average=comparison.get("cityAverage"),
        national_average=comparison.get("nationalAverage"),
    )


def parse_schools(data: Dict[str, Any], query: Query) -> SchoolData:
    schools = tuple(
        School(
            name=str(require(item, "name")),
            type=str(item.get("type") or "primary").lower(),
            rating=float(item.get("rating", 0)),
            distance_m=int(round(float(item.get("distance", 0)))),
            address=str(item.get("address") or ""),
        )
        for item in require(data, "schools")
    )
    average = data.get("averageRating")
    if average is None:
        average = round(sum(s.rating for s in schools) / len(schools), 1) if schools else 0.0
    return SchoolData(
        nearby_schools=schools,
        average_rating=float(average),
        school_district=str(data.get("district") or "Unknown"),
    )


def parse_demographics(data: Dict[str, Any], query: Query) -> DemographicsData:
    education = data.get("educationLevel") or {}
    family = data.get("familyComposition") or {}
    return DemographicsData(
        population=int(require(data, "population")),
        median_age=int(require(data, "medianAge")),
        median_income=int(require(data, "medianIncome")),
        employment_rate=int(data.get("employmentRate", 0)),
        high_school_pct=int(education.get("highSchool", 0)),
        university_pct=int(education.get("university", 0)),
        families_pct=int(family.get("families", 0)),
        singles_pct=int(family.get("singles", 0)),
    )


def parse_market(data: Dict[str, Any], query: Query) -> MarketData:
    return MarketData(
        average_price=int(require(data, "averagePrice")),
        price_per_sqm=int(require(data, "pricePerSqm")),
        market_trend=str(data.get("marketTrend") or "stable").lower(),
        competitiveness=int(data.get("competitiveness", 0)),
        rental_yield_pct=float(data.get("rentalYield", 0.0)),
        appreciation_rate_pct=float(data.get("appreciationRate", 0.0)),
    )


def parse_flood(data: Dict[str, Any], query: Query) -> FloodRisk:
    return FloodRisk(
        level=str(require(data, "riskLevel")).lower(),
        flood_zone=str(data.get("floodZone") or "Unknown"),
        years_since_last_flood=data.get("yearsSinceLastFlood"),
        drainage_quality=str(data.get("drainageQuality") or "fair").lower(),
    )


def parse_fire(data: Dict[str, Any], query: Query) -> FireRisk:
    return FireRisk(
        level=str(require(data, "riskLevel")).lower(),
        vegetation=str(data.get("vegetationType") or "Unknown"),
        nearby_fires=len(_items(data, "nearbyIncidents")),
        fire_season_months=tuple(str(m) for m in _items(data, "fireSeasonMonths")),
    )


def parse_storm(data: Dict[str, Any], query: Query) -> StormRisk:
    wind = data.get("windPatterns") or {}
    return StormRisk(
        cyclone_risk=str(require(data, "cycloneRisk")).lower(),
        tornado_risk=str(data.get("tornadoRisk") or "none").lower(),
        hail_risk=str(data.get("hailRisk") or "low").lower(),
        average_wind_kmh=float(wind.get("averageSpeed", 0.0)),
        max_wind_kmh=float(wind.get("maxRecorded", 0.0)),
        dominant_direction=str(wind.get("dominantDirection") or ""),
        storm_season=str(data.get("stormSeason") or ""),
    )


def parse_drought(data: Dict[str, Any], query: Query) -> DroughtRisk:
    return DroughtRisk(
        current_status=str(require(data, "currentStatus")).lower(),
        historical_frequency=float(data.get("historicalFrequency", 0.0)),
        water_security=str(data.get("waterSecurity") or "fair").lower(),
    )


PARSERS: Dict[CategoryID, Callable[[Dict[str, Any], Query], Payload]] = {
    CategoryID.CRIME: parse_crime,
    CategoryID.SCHOOLS: parse_schools,
    CategoryID.DEMOGRAPHICS: parse_demographics,
    CategoryID.MARKET: parse_market,
    CategoryID.FLOOD: parse_flood,
    CategoryID.FIRE: parse_fire,
    CategoryID.STORM: parse_storm,
    CategoryID.DROUGHT: parse_drought,
}


class OpenDataAdapter(HttpJsonAdapter):
    def __init__(
        self,
        descriptor: ProviderDescriptor,
        url_template: str,
        *,
        retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if descriptor.category not in PARSERS:
            raise ConfigurationError(f"no open-data parser for category {descriptor.category}")
        if "{lat}" not in url_template or "{lon}" not in url_template:
            raise ConfigurationError(f"{descriptor.name}: url template needs {{lat}} and {{lon}}")
        super().__init__(descriptor, retries=retries, transport=transport)
        self.url_template = url_template
        self._parser = PARSERS[descriptor.category]

    def build_request(self, query: Query) -> Tuple[str, Optional[Any]]:
        url = self.url_template.format(
            lat=f"{query.latitude:.6f}",
            lon=f"{query.longitude:.6f}",
            address=quote(query.address_hint),
        )
        return url, None

    def parse(self, data: Any, query: Query) -> Payload:
        if not isinstance(data, dict):
            raise TypeError("expected a JSON object")
        return self._parser(data, query)
