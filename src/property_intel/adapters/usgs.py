from __future__ import annotations

import time
from typing import Any, Callable, List, Optional, Tuple

import httpx

from ..categories import CategoryID
from ..errors import ConfigurationError
from ..geo import haversine_km
from ..models import ProviderDescriptor, Query
from ..payloads import EarthquakeRisk, SeismicEvent
from .http import HttpJsonAdapter
from .http_client import require

USGS_ENDPOINT = "https://earthquake.usgs.gov/fdsnws/event/1/query"
# Window the event frequency is measured over.
HISTORY_YEARS = 5


def earthquake_risk_level(magnitudes: List[float], years: int = HISTORY_YEARS) -> str:
    if not magnitudes:
        return "very_low"
    max_mag = max(magnitudes)
    frequency = len(magnitudes) / years
    if max_mag > 6 or frequency > 2:
        return "high"
    if max_mag > 4 or frequency > 1:
        return "moderate"
    if max_mag > 3 or frequency > 0.5:
        return "low"
    return "very_low"


class UsgsEarthquakeAdapter(HttpJsonAdapter):
    """USGS FDSN event service, GeoJSON output."""

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        *,
        radius_km: int = 500,
        limit: int = 50,
        min_magnitude: float = 3.0,
        retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        if descriptor.category != CategoryID.EARTHQUAKE:
            raise ConfigurationError("UsgsEarthquakeAdapter serves the earthquake category")
        super().__init__(descriptor, retries=retries, transport=transport)
        self.radius_km = radius_km
        self.limit = limit
        self.min_magnitude = min_magnitude
        self._clock = clock

    def build_request(self, query: Query) -> Tuple[str, Optional[Any]]:
        url = (
            f"{USGS_ENDPOINT}?format=geojson&latitude={query.latitude:.6f}"
            f"&longitude={query.longitude:.6f}&maxradiuskm={self.radius_km}"
            f"&limit={self.limit}&minmagnitude={self.min_magnitude}"
        )
        return url, None

    def parse(self, data: Any, query: Query) -> EarthquakeRisk:
        now_ms = self._clock() * 1000.0
        events = []
        for feature in require(data, "features", provider=self.name):
            props = feature["properties"]
            lon, lat = feature["geometry"]["coordinates"][:2]
            magnitude = props.get("mag")
            if magnitude is None:
                continue
            events.append(
                SeismicEvent(
                    magnitude=float(magnitude),
                    days_ago=max(0, int((now_ms - float(props.get("time") or now_ms)) // 86_400_000)),
                    distance_km=round(haversine_km(query.latitude, query.longitude, float(lat), float(lon)), 1),
                    location=str(props.get("place") or ""),
                )
            )
        magnitudes = [e.magnitude for e in events]
        return EarthquakeRisk(
            level=earthquake_risk_level(magnitudes),
            recent_activity=tuple(events[:10]),
            frequency_per_year=round(len(events) / HISTORY_YEARS, 2),
        )
