from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .categories import CategoryID
from .errors import ConfigurationError, ErrorKind
from .payloads import Payload

FALLBACK_SOURCE = "fallback"


class DataQuality(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class Query:
    latitude: float
    longitude: float
    address_hint: str = ""

    def __post_init__(self) -> None:
        try:
            lat = float(self.latitude)
            lon = float(self.longitude)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"coordinates must be numbers, got {self.latitude!r}, {self.longitude!r}"
            ) from None
        if not (math.isfinite(lat) and -90.0 <= lat <= 90.0):
            raise ConfigurationError(f"latitude out of range: {self.latitude!r}")
        if not (math.isfinite(lon) and -180.0 <= lon <= 180.0):
            raise ConfigurationError(f"longitude out of range: {self.longitude!r}")
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)
        object.__setattr__(self, "address_hint", str(self.address_hint or "").strip())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address_hint": self.address_hint,
        }


@dataclass(frozen=True)
class ProviderDescriptor:
    name: str
    category: CategoryID
    timeout: float  # seconds
    reliability_weight: float

    def __post_init__(self) -> None:
        if not (self.name or "").strip():
            raise ConfigurationError("provider name is required")
        if self.name == FALLBACK_SOURCE:
            raise ConfigurationError(f"provider name {FALLBACK_SOURCE!r} is reserved")
        object.__setattr__(self, "category", CategoryID(self.category))
        if not self.timeout or self.timeout <= 0:
            raise ConfigurationError(f"{self.name}: timeout must be positive")
        if not 0.0 <= float(self.reliability_weight) <= 1.0:
            raise ConfigurationError(f"{self.name}: reliability_weight must be in [0, 1]")


@dataclass(frozen=True)
class ProviderOutcome:
    category: CategoryID
    provider: str
    reliability: float
    value: Optional[Payload]
    succeeded: bool
    error: Optional[ErrorKind] = None
    elapsed: float = 0.0  # seconds
    cached: bool = False
    detail: Optional[str] = None

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            "category": str(self.category),
            "provider": self.provider,
            "status": "success" if self.succeeded else "failed",
            "error": str(self.error) if self.error else None,
            "elapsed_ms": round(self.elapsed * 1000.0, 1),
            "cached": self.cached,
        }


@dataclass(frozen=True)
class AggregatedField:
    category: CategoryID
    value: Payload
    sources: Tuple[str, ...]
    confidence: int
    data_quality: DataQuality
    completeness: int
    last_updated: datetime

    @property
    def is_fallback(self) -> bool:
        return FALLBACK_SOURCE in self.sources

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value.to_dict(),
            "sources": list(self.sources),
            "confidence": self.confidence,
            "data_quality": str(self.data_quality),
            "completeness": self.completeness,
            "last_updated": self.last_updated.isoformat(),
        }


@dataclass(frozen=True)
class ProfileSummary:
    confidence: int
    data_quality: DataQuality
    completeness: int
    fallback_categories: Tuple[CategoryID, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence": self.confidence,
            "data_quality": str(self.data_quality),
            "completeness": self.completeness,
            "fallback_categories": [str(c) for c in self.fallback_categories],
        }


@dataclass(frozen=True)
class UnifiedProfile(Mapping[CategoryID, AggregatedField]):
    """Read-only mapping of category -> field for one query."""

    query: Query
    fields: Mapping[CategoryID, AggregatedField]
    summary: ProfileSummary
    last_updated: datetime

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __getitem__(self, key: object) -> AggregatedField:
        try:
            return self.fields[CategoryID(key)]
        except ValueError:
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[CategoryID]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def sources(self) -> Dict[CategoryID, Tuple[str, ...]]:
        return {k: v.sources for k, v in self.fields.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query.to_dict(),
            "last_updated": self.last_updated.isoformat(),
            "summary": self.summary.to_dict(),
            "categories": {str(k): v.to_dict() for k, v in self.fields.items()},
        }
