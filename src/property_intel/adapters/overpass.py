from __future__ import annotations

from typing import Any, Optional, Tuple

import httpx

from ..categories import CategoryID
from ..errors import ConfigurationError
from ..geo import haversine_km
from ..models import ProviderDescriptor, Query
from ..payloads import TransportationData
from .http import HttpJsonAdapter
from .http_client import require

OVERPASS_ENDPOINT = "https://overpass-api.de/api/interpreter"

TRANSPORT_QUERY = """
[out:json][timeout:25];
(
  node["public_transport"="stop_position"](around:2000,{lat},{lon});
  node["railway"="station"](around:5000,{lat},{lon});
  node["amenity"="bus_station"](around:5000,{lat},{lon});
);
out body;
"""


def station_type(tags: dict) -> str:
    if tags.get("railway") == "station":
        return "Train"
    if tags.get("amenity") == "bus_station" or tags.get("bus") == "yes":
        return "Bus"
    if tags.get("tram") == "yes":
        return "Tram"
    return "Bus"


class OverpassTransportAdapter(HttpJsonAdapter):
    """Nearest public-transport node from OpenStreetMap via Overpass."""

    method = "POST"

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        *,
        endpoint: str = OVERPASS_ENDPOINT,
        retries: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if descriptor.category != CategoryID.TRANSPORTATION:
            raise ConfigurationError("OverpassTransportAdapter serves the transportation category")
        super().__init__(descriptor, retries=retries, transport=transport)
        self.endpoint = endpoint

    def build_request(self, query: Query) -> Tuple[str, Optional[Any]]:
        body = TRANSPORT_QUERY.format(lat=f"{query.latitude:.6f}", lon=f"{query.longitude:.6f}")
        return self.endpoint, {"data": body}

    def parse(self, data: Any, query: Query) -> TransportationData:
        nodes = [
            e
            for e in require(data, "elements", provider=self.name)
            if e.get("lat") is not None and e.get("lon") is not None
        ]
        if not nodes:
            return TransportationData(
                nearest_station="none within 5 km",
                station_distance_m=5000,
                station_type="none",
                walk_score=20,
                bike_score=20,
                traffic_level="low",
                commute_cbd_min=60,
                commute_airport_min=90,
            )
        distance_km, idx = min(
            (haversine_km(query.latitude, query.longitude, float(n["lat"]), float(n["lon"])), idx)
            for idx, n in enumerate(nodes)
        )
        nearest = nodes[idx]
        tags = nearest.get("tags") or {}
        # Stop density within the search radius drives the walkability estimate.
        density = len(nodes)
        walk = min(100, 30 + density * 4)
        rail = any((n.get("tags") or {}).get("railway") == "station" for n in nodes)
        return TransportationData(
            nearest_station=str(tags.get("name") or "Unnamed stop"),
            station_distance_m=int(round(distance_km * 1000)),
            station_type=station_type(tags),
            walk_score=walk,
            bike_score=min(100, 20 + density * 3),
            traffic_level="high" if density > 20 else "medium" if density > 5 else "low",
            commute_cbd_min=25 if rail else 35,
            commute_airport_min=45 if rail else 60,
        )
