from .categories import ALL_CATEGORIES, CategoryID, parse_categories
from .coordinator import AggregationCoordinator
from .errors import AdapterError, ConfigurationError, ErrorKind
from .fallback import generate_fallback
from .merger import merge
from .models import (
    AggregatedField,
    DataQuality,
    ProviderDescriptor,
    ProviderOutcome,
    Query,
    UnifiedProfile,
)
from .scoring import DEFAULT_POLICY, ScoringPolicy, score_outcomes
from .wiring import build_coordinator, build_default_registry

__all__ = [
    "ALL_CATEGORIES",
    "AdapterError",
    "AggregatedField",
    "AggregationCoordinator",
    "CategoryID",
    "ConfigurationError",
    "DEFAULT_POLICY",
    "DataQuality",
    "ErrorKind",
    "ProviderDescriptor",
    "ProviderOutcome",
    "Query",
    "ScoringPolicy",
    "UnifiedProfile",
    "build_coordinator",
    "build_default_registry",
    "generate_fallback",
    "merge",
    "parse_categories",
    "score_outcomes",
]
