from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import httpx

from ..categories import CategoryID
from ..errors import AdapterError, ConfigurationError, ErrorKind
from ..models import ProviderDescriptor, Query
from ..payloads import AirQuality, Pollutants
from .http import HttpJsonAdapter
from .http_client import require

OPENAQ_ENDPOINT = "https://api.openaq.org/v2/latest"

# US EPA PM2.5 breakpoints: (conc_low, conc_high, aqi_low, aqi_high)
PM25_BREAKPOINTS = (
    (0.0, 12.0, 0, 50),
    (12.1, 35.4, 51, 100),
    (35.5, 55.4, 101, 150),
    (55.5, 150.4, 151, 200),
    (150.5, 250.4, 201, 300),
    (250.5, 500.4, 301, 500),
)

DEFAULT_POLLUTANTS = {"pm25": 15.0, "pm10": 25.0, "o3": 30.0, "no2": 20.0}


def pm25_to_aqi(concentration: float) -> int:
    c = max(0.0, float(concentration))
    for c_low, c_high, a_low, a_high in PM25_BREAKPOINTS:
        if c <= c_high:
            c = max(c, c_low)
            return round((a_high - a_low) / (c_high - c_low) * (c - c_low) + a_low)
    return 500


def aqi_level(aqi: int) -> str:
    if aqi <= 50:
        return "Good"
    if aqi <= 100:
        return "Moderate"
    if aqi <= 150:
        return "Unhealthy for Sensitive Groups"
    if aqi <= 200:
        return "Unhealthy"
    return "Very Unhealthy"


class OpenAqAdapter(HttpJsonAdapter):
    def __init__(
        self,
        descriptor: ProviderDescriptor,
        *,
        radius_m: int = 50_000,
        retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if descriptor.category != CategoryID.AIR_QUALITY:
            raise ConfigurationError("OpenAqAdapter serves the air_quality category")
        super().__init__(descriptor, retries=retries, transport=transport)
        self.radius_m = radius_m

    def build_request(self, query: Query) -> Tuple[str, Optional[Any]]:
        url = (
            f"{OPENAQ_ENDPOINT}?coordinates={query.latitude:.6f},{query.longitude:.6f}"
            f"&radius={self.radius_m}&limit=1"
        )
        return url, None

    def parse(self, data: Any, query: Query) -> AirQuality:
        results = require(data, "results", provider=self.name)
        if not results:
            raise AdapterError(ErrorKind.INVALID_RESPONSE, "no monitoring station in range", provider=self.name)
        values: Dict[str, float] = dict(DEFAULT_POLLUTANTS)
        for measurement in results[0].get("measurements") or []:
            parameter = str(measurement.get("parameter") or "").lower()
            if parameter in values and measurement.get("value") is not None:
                values[parameter] = float(measurement["value"])
        aqi = pm25_to_aqi(values["pm25"])
        return AirQuality(aqi=aqi, level=aqi_level(aqi), pollutants=Pollutants(**values))
