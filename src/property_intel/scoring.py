from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .categories import CategoryID
from .errors import ConfigurationError
from .models import AggregatedField, DataQuality, ProviderOutcome


# Confidence policy (transparent and documented):
# - completeness: share of requested sources that succeeded, scaled 0..100
#   and weighted by `completeness_weight`
# - reliability: average reliability weight (0..1) of the succeeding sources,
#   scaled by `reliability_weight`; contributes nothing without a success
# - fallback: fixed penalty per category that had to be synthesized
# Quality tiers are (min_sources, confidence strictly above) pairs, checked
# from excellent down to fair; everything else is poor.
@dataclass(frozen=True)
class ScoringPolicy:
    completeness_weight: float = 0.7
    reliability_weight: float = 30.0
    fallback_penalty: int = 10
    fallback_confidence: int = 40
    excellent: Tuple[int, int] = (4, 85)
    good: Tuple[int, int] = (3, 70)
    fair: Tuple[int, int] = (2, 50)

    def __post_init__(self) -> None:
        if self.completeness_weight < 0 or self.reliability_weight < 0:
            raise ConfigurationError("scoring weights must be non-negative")
        if self.fallback_penalty < 0:
            raise ConfigurationError("fallback_penalty must be non-negative")
        if not 0 <= self.fallback_confidence <= 100:
            raise ConfigurationError("fallback_confidence must be in [0, 100]")
        tiers = [self.excellent, self.good, self.fair]
        for upper, lower in zip(tiers, tiers[1:]):
            if upper[0] < lower[0] or upper[1] < lower[1]:
                raise ConfigurationError(
                    "quality thresholds must be ordered excellent >= good >= fair"
                )


DEFAULT_POLICY = ScoringPolicy()


@dataclass(frozen=True)
class Score:
    confidence: int
    quality: DataQuality
    completeness: int
    source_count: int


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, value)))


def completeness_pct(successful: int, requested: int) -> int:
    """Share of successes as 0..100; 100 only when nothing failed."""

    if requested <= 0 or successful <= 0:
        return 0
    if successful >= requested:
        return 100
    pct = math.floor(successful * 100.0 / requested + 0.5)
    return _clamp(pct, 0, 99)


def classify_quality(
    source_count: int,
    confidence: int,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> DataQuality:
    for tier, (min_sources, min_confidence) in (
        (DataQuality.EXCELLENT, policy.excellent),
        (DataQuality.GOOD, policy.good),
        (DataQuality.FAIR, policy.fair),
    ):
        if source_count >= min_sources and confidence > min_confidence:
            return tier
    return DataQuality.POOR


def blend_confidence(
    completeness: int,
    reliabilities: Sequence[float],
    fallback_count: int,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> int:
    value = completeness * policy.completeness_weight
    if reliabilities:
        avg = sum(reliabilities) / len(reliabilities)
        value += avg * policy.reliability_weight
    value -= policy.fallback_penalty * max(0, fallback_count)
    return _clamp(round(value))


def score_outcomes(
    outcomes: Iterable[ProviderOutcome],
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> Score:
    """Score the attempts made for one or more categories.

    Each outcome is one requested source. A category whose outcomes contain
    no success counts as one fallback.
    """

    outcomes = list(outcomes)
    succeeded = [o for o in outcomes if o.succeeded]
    by_category: Dict[CategoryID, bool] = {}
    for o in outcomes:
        by_category[o.category] = by_category.get(o.category, False) or o.succeeded
    fallback_count = sum(1 for ok in by_category.values() if not ok)

    completeness = completeness_pct(len(succeeded), len(outcomes))
    confidence = blend_confidence(
        completeness,
        [o.reliability for o in succeeded],
        fallback_count,
        policy,
    )
    if succeeded:
        # Real data never scores below a synthesized value.
        confidence = max(confidence, policy.fallback_confidence)
    sources = {o.provider for o in succeeded}
    return Score(
        confidence=confidence,
        quality=classify_quality(len(sources), confidence, policy),
        completeness=completeness,
        source_count=len(sources),
    )


def score_profile(
    fields: Mapping[CategoryID, AggregatedField],
    outcomes: Optional[Iterable[ProviderOutcome]] = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> Tuple[Score, List[CategoryID]]:
    """Profile-level score: completeness is measured per category."""

    real = [c for c, f in fields.items() if not f.is_fallback]
    fallbacks = [c for c, f in fields.items() if f.is_fallback]
    completeness = completeness_pct(len(real), len(fields))

    reliabilities: List[float] = []
    sources = set()
    for o in outcomes or ():
        if o.succeeded and o.category in fields and not fields[o.category].is_fallback:
            reliabilities.append(o.reliability)
            sources.add(o.provider)
    if not reliabilities and real:
        # No outcome detail: fall back to the field confidences as a proxy.
        reliabilities = [fields[c].confidence / 100.0 for c in real]
        for c in real:
            sources.update(fields[c].sources)

    confidence = blend_confidence(completeness, reliabilities, len(fallbacks), policy)
    score = Score(
        confidence=confidence,
        quality=classify_quality(len(sources), confidence, policy),
        completeness=completeness,
        source_count=len(sources),
    )
    return score, fallbacks
