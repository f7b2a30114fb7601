from __future__ import annotations

from typing import Any, Optional, Tuple

import httpx

from ..categories import CategoryID
from ..errors import ConfigurationError
from ..models import ProviderDescriptor, Query
from ..payloads import WeatherData
from .http import HttpJsonAdapter
from .http_client import require

WTTR_ENDPOINT = "https://wttr.in"


class WttrWeatherAdapter(HttpJsonAdapter):
    """Current conditions from wttr.in (`format=j1`)."""

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        *,
        endpoint: str = WTTR_ENDPOINT,
        retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if descriptor.category != CategoryID.WEATHER:
            raise ConfigurationError("WttrWeatherAdapter serves the weather category")
        super().__init__(descriptor, retries=retries, transport=transport)
        self.endpoint = endpoint.rstrip("/")

    def build_request(self, query: Query) -> Tuple[str, Optional[Any]]:
        return f"{self.endpoint}/{query.latitude:.4f},{query.longitude:.4f}?format=j1", None

    def parse(self, data: Any, query: Query) -> WeatherData:
        current = require(data, "current_condition", provider=self.name)[0]
        descriptions = current.get("weatherDesc") or [{}]
        return WeatherData(
            temperature_c=float(current["temp_C"]),
            humidity=int(current["humidity"]),
            wind_kmh=float(current["windspeedKmph"]),
            description=str(descriptions[0].get("value") or "").strip(),
        )
