"""Typed payload variants, one per category.

Payloads are frozen so a merged profile can be shared read-only. Sequences
are stored as tuples; `to_dict()` returns plain JSON-ready structures.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple, Type, Union

from .categories import CategoryID
from .errors import ConfigurationError


@dataclass(frozen=True)
class _PayloadBase:
    category: ClassVar[CategoryID]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Crime


@dataclass(frozen=True)
class CrimeIncident:
    type: str
    days_ago: int
    severity: str  # low|medium|high
    distance_m: int


@dataclass(frozen=True)
class CrimeData(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.CRIME

    total_incidents: int
    crime_rate: float
    safety_score: int
    recent_incidents: Tuple[CrimeIncident, ...] = ()
    city_average: Optional[float] = None
    national_average: Optional[float] = None


# Schools


@dataclass(frozen=True)
class School:
    name: str
    type: str  # primary|secondary|private
    rating: float
    distance_m: int
    address: str = ""


@dataclass(frozen=True)
class SchoolData(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.SCHOOLS

    nearby_schools: Tuple[School, ...]
    average_rating: float
    school_district: str


# Demographics


@dataclass(frozen=True)
class DemographicsData(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.DEMOGRAPHICS

    population: int
    median_age: int
    median_income: int
    employment_rate: int
    high_school_pct: int
    university_pct: int
    families_pct: int
    singles_pct: int


# Environmental hazards


@dataclass(frozen=True)
class SeismicEvent:
    magnitude: float
    days_ago: int
    distance_km: float
    location: str = ""


@dataclass(frozen=True)
class EarthquakeRisk(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.EARTHQUAKE

    level: str  # very_low|low|moderate|high|very_high
    recent_activity: Tuple[SeismicEvent, ...] = ()
    frequency_per_year: float = 0.0


@dataclass(frozen=True)
class FloodRisk(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.FLOOD

    level: str
    flood_zone: str
    years_since_last_flood: Optional[int] = None
    drainage_quality: str = "fair"


@dataclass(frozen=True)
class FireRisk(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.FIRE

    level: str
    vegetation: str
    nearby_fires: int = 0
    fire_season_months: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StormRisk(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.STORM

    cyclone_risk: str  # none|low|moderate|high
    tornado_risk: str
    hail_risk: str  # low|moderate|high
    average_wind_kmh: float
    max_wind_kmh: float
    dominant_direction: str
    storm_season: str


@dataclass(frozen=True)
class DroughtRisk(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.DROUGHT

    current_status: str  # none|mild|moderate|severe|extreme
    historical_frequency: float
    water_security: str  # excellent|good|fair|poor|critical


@dataclass(frozen=True)
class Pollutants:
    pm25: float
    pm10: float
    o3: float
    no2: float


@dataclass(frozen=True)
class AirQuality(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.AIR_QUALITY

    aqi: int
    level: str
    pollutants: Pollutants


# Transportation


@dataclass(frozen=True)
class TransportationData(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.TRANSPORTATION

    nearest_station: str
    station_distance_m: int
    station_type: str
    walk_score: int
    bike_score: int
    traffic_level: str  # low|medium|high
    commute_cbd_min: int
    commute_airport_min: int


# Weather


@dataclass(frozen=True)
class MonthlyClimate:
    month: str
    average_temp: float
    rainfall_mm: float
    humidity: int


@dataclass(frozen=True)
class WeatherData(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.WEATHER

    temperature_c: float
    humidity: int
    wind_kmh: float
    description: str
    monthly: Tuple[MonthlyClimate, ...] = field(default_factory=tuple)


# Market


@dataclass(frozen=True)
class MarketData(_PayloadBase):
    category: ClassVar[CategoryID] = CategoryID.MARKET

    average_price: int
    price_per_sqm: int
    market_trend: str  # rising|stable|declining
    competitiveness: int
    rental_yield_pct: float
    appreciation_rate_pct: float


Payload = Union[
    CrimeData,
    SchoolData,
    DemographicsData,
    EarthquakeRisk,
    FloodRisk,
    FireRisk,
    StormRisk,
    DroughtRisk,
    AirQuality,
    TransportationData,
    WeatherData,
    MarketData,
]

PAYLOAD_TYPES: Dict[CategoryID, Type[_PayloadBase]] = {
    cls.category: cls
    for cls in (
        CrimeData,
        SchoolData,
        DemographicsData,
        EarthquakeRisk,
        FloodRisk,
        FireRisk,
        StormRisk,
        DroughtRisk,
        AirQuality,
        TransportationData,
        WeatherData,
        MarketData,
    )
}


def payload_type(category: CategoryID) -> Type[_PayloadBase]:
    try:
        return PAYLOAD_TYPES[CategoryID(category)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"No payload type for category: {category!r}") from None


def is_valid_payload(category: CategoryID, value: object) -> bool:
    return isinstance(value, payload_type(category))
