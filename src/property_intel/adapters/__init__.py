from .base import ProviderAdapter
from .cached import CachingAdapter
from .fake import FakeAdapter
from .http import HttpJsonAdapter
from .open_data import OpenDataAdapter
from .openaq import OpenAqAdapter
from .overpass import OverpassTransportAdapter
from .registry import AdapterRegistry
from .usgs import UsgsEarthquakeAdapter
from .wttr import WttrWeatherAdapter

__all__ = [
    "AdapterRegistry",
    "CachingAdapter",
    "FakeAdapter",
    "HttpJsonAdapter",
    "OpenAqAdapter",
    "OpenDataAdapter",
    "OverpassTransportAdapter",
    "ProviderAdapter",
    "UsgsEarthquakeAdapter",
    "WttrWeatherAdapter",
]
