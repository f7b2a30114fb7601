from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence

from .categories import CategoryID, parse_categories
from .fallback import generate_fallback
from .models import (
    FALLBACK_SOURCE,
    AggregatedField,
    ProfileSummary,
    ProviderOutcome,
    Query,
    UnifiedProfile,
)
from .payloads import Payload
from .scoring import DEFAULT_POLICY, ScoringPolicy, classify_quality, score_profile


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def fallback_field(
    category: CategoryID,
    query: Query,
    *,
    policy: ScoringPolicy = DEFAULT_POLICY,
    now: Optional[datetime] = None,
    fallback: Callable[[CategoryID, Query], Payload] = generate_fallback,
) -> AggregatedField:
    confidence = policy.fallback_confidence
    return AggregatedField(
        category=category,
        value=fallback(category, query),
        sources=(FALLBACK_SOURCE,),
        confidence=confidence,
        data_quality=classify_quality(1, confidence, policy),
        completeness=0,
        last_updated=now or utcnow(),
    )


def merge(
    fields: Mapping[CategoryID, AggregatedField],
    requested: Sequence[CategoryID],
    query: Query,
    *,
    outcomes: Optional[Iterable[ProviderOutcome]] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
    now: Optional[datetime] = None,
    fallback: Callable[[CategoryID, Query], Payload] = generate_fallback,
) -> UnifiedProfile:
    """Assemble one profile from per-category fields.

    Every requested category ends up with an entry: gaps are filled with a
    synthesized field. All fields share the profile timestamp. Fields for
    categories that were not requested are dropped. Entries follow the
    requested order, so the result does not depend on the order outcomes
    arrived in.
    """

    stamp = now or utcnow()
    merged: Dict[CategoryID, AggregatedField] = {}
    for category in parse_categories(requested):
        existing = fields.get(category)
        if existing is None:
            existing = fallback_field(category, query, policy=policy, now=stamp, fallback=fallback)
        merged[category] = replace(existing, last_updated=stamp)

    score, fallback_categories = score_profile(merged, outcomes, policy)
    summary = ProfileSummary(
        confidence=score.confidence,
        data_quality=score.quality,
        completeness=score.completeness,
        fallback_categories=tuple(fallback_categories),
    )
    return UnifiedProfile(query=query, fields=merged, summary=summary, last_updated=stamp)
