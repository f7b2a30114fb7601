from __future__ import annotations

from enum import StrEnum
from typing import Iterable, List

from .errors import ConfigurationError


class CategoryID(StrEnum):
    """Classes of location data the engine aggregates."""

    CRIME = "crime"
    SCHOOLS = "schools"
    DEMOGRAPHICS = "demographics"

    # Environmental hazards
    EARTHQUAKE = "earthquake"
    FLOOD = "flood"
    FIRE = "fire"
    STORM = "storm"
    DROUGHT = "drought"
    AIR_QUALITY = "air_quality"

    TRANSPORTATION = "transportation"
    WEATHER = "weather"
    MARKET = "market"


ALL_CATEGORIES: tuple[CategoryID, ...] = tuple(CategoryID)

# Categories served through the geographic cache unless configured otherwise.
DEFAULT_CACHED_CATEGORIES: frozenset[CategoryID] = frozenset({CategoryID.WEATHER})


def parse_category(raw: object) -> CategoryID:
    if isinstance(raw, CategoryID):
        return raw
    key = str(raw or "").strip().lower().replace("-", "_")
    try:
        return CategoryID(key)
    except ValueError:
        raise ConfigurationError(f"Unknown category: {raw!r}") from None


def parse_categories(raw: Iterable[object]) -> List[CategoryID]:
    """Validate a category list, preserving order and dropping duplicates."""

    out: List[CategoryID] = []
    for item in raw:
        category = parse_category(item)
        if category not in out:
            out.append(category)
    if not out:
        raise ConfigurationError("At least one category is required")
    return out
