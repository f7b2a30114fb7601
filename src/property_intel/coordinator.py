from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .adapters.base import ProviderAdapter
from .adapters.registry import AdapterRegistry
from .categories import CategoryID, parse_categories
from .errors import AdapterError, ConfigurationError, ErrorKind
from .fallback import generate_fallback
from .merger import fallback_field, merge, utcnow
from .models import AggregatedField, ProviderOutcome, Query, UnifiedProfile
from .payloads import Payload
from .scoring import DEFAULT_POLICY, ScoringPolicy, score_outcomes

logger = logging.getLogger("pi.aggregate")


class AggregationCoordinator:
    """Fans a query out to every adapter of the requested categories.

    Each adapter runs as its own task under its descriptor timeout. All
    tasks are joined before scoring; a failure only affects its own
    category, which falls back to a synthesized value when no adapter for
    it succeeded.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        *,
        policy: ScoringPolicy = DEFAULT_POLICY,
        fallback: Callable[[CategoryID, Query], Payload] = generate_fallback,
        clock: Callable[[], float] = time.perf_counter,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        self.registry = registry
        self.policy = policy
        self.fallback = fallback
        self._clock = clock
        self._now_fn = now_fn

    async def _run(self, adapter: ProviderAdapter, query: Query) -> ProviderOutcome:
        descriptor = adapter.descriptor
        start = self._clock()
        value: Optional[Payload] = None
        error: Optional[ErrorKind] = None
        detail: Optional[str] = None
        cached = False
        try:
            value, cached = await asyncio.wait_for(adapter.fetch_with_meta(query), descriptor.timeout)
            value = adapter.check_payload(value)
        except asyncio.TimeoutError:
            error, detail = ErrorKind.TIMEOUT, f"no response within {descriptor.timeout}s"
        except AdapterError as exc:
            error, detail = exc.kind, str(exc)
        except Exception as exc:
            logger.warning("adapter %s raised %s: %s", adapter.name, type(exc).__name__, exc)
            error, detail = ErrorKind.UNAVAILABLE, f"{type(exc).__name__}: {exc}"
        return ProviderOutcome(
            category=descriptor.category,
            provider=adapter.name,
            reliability=descriptor.reliability_weight,
            value=value if error is None else None,
            succeeded=error is None,
            error=error,
            elapsed=self._clock() - start,
            cached=cached and error is None,
            detail=detail,
        )

    async def _gather(
        self,
        jobs: List[ProviderAdapter],
        query: Query,
        deadline: Optional[float],
    ) -> List[ProviderOutcome]:
        tasks = [asyncio.create_task(self._run(adapter, query)) for adapter in jobs]
        if not tasks:
            return []
        if deadline is None:
            return list(await asyncio.gather(*tasks))

        done, pending = await asyncio.wait(tasks, timeout=deadline)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning("deadline of %.3fs hit; %d adapter(s) cancelled", deadline, len(pending))
        outcomes = []
        for adapter, task in zip(jobs, tasks):
            if task in done:
                outcomes.append(task.result())
                continue
            outcomes.append(
                ProviderOutcome(
                    category=adapter.category,
                    provider=adapter.name,
                    reliability=adapter.descriptor.reliability_weight,
                    value=None,
                    succeeded=False,
                    error=ErrorKind.TIMEOUT,
                    elapsed=deadline,
                    detail="cancelled at aggregation deadline",
                )
            )
        return outcomes

    def _field_for(
        self,
        category: CategoryID,
        outcomes: List[ProviderOutcome],
        query: Query,
        now: Optional[datetime],
    ) -> AggregatedField:
        """Build one category's field from its adapters' outcomes.

        The value comes from the most reliable success. Every other success
        is still listed in `sources` since it corroborates the chosen value;
        failed adapters count only as attempted.
        """

        successes = [o for o in outcomes if o.succeeded]
        if not successes:
            return fallback_field(category, query, policy=self.policy, now=now, fallback=self.fallback)
        # Outcomes arrive in registration order; max() keeps the first of equals.
        preferred = max(successes, key=lambda o: o.reliability)
        score = score_outcomes(outcomes, self.policy)
        return AggregatedField(
            category=category,
            value=preferred.value,
            sources=tuple(o.provider for o in successes),
            confidence=score.confidence,
            data_quality=score.quality,
            completeness=score.completeness,
            last_updated=now or utcnow(),
        )

    async def aggregate_with_outcomes(
        self,
        query: Query,
        categories: Iterable[object],
        *,
        deadline: Optional[float] = None,
    ) -> Tuple[UnifiedProfile, Tuple[ProviderOutcome, ...]]:
        """Aggregate and also return this run's per-adapter outcomes."""

        requested = parse_categories(categories)
        if deadline is not None:
            try:
                deadline = float(deadline)
            except (TypeError, ValueError):
                raise ConfigurationError(f"deadline must be a number, got {deadline!r}") from None
            if not deadline > 0:
                raise ConfigurationError("deadline must be positive")

        jobs = [adapter for category in requested for adapter in self.registry.adapters_for(category)]
        started = self._clock()
        outcomes = tuple(await self._gather(jobs, query, deadline))

        for outcome in outcomes:
            if outcome.succeeded:
                logger.info(
                    "%s/%s ok in %.1fms%s",
                    outcome.category,
                    outcome.provider,
                    outcome.elapsed * 1000.0,
                    " (cached)" if outcome.cached else "",
                )
            else:
                logger.warning(
                    "%s/%s failed (%s) after %.1fms: %s",
                    outcome.category,
                    outcome.provider,
                    outcome.error,
                    outcome.elapsed * 1000.0,
                    outcome.detail,
                )

        now = self._now_fn() if self._now_fn else None
        by_category: Dict[CategoryID, List[ProviderOutcome]] = {c: [] for c in requested}
        for outcome in outcomes:
            by_category[outcome.category].append(outcome)
        fields = {c: self._field_for(c, by_category[c], query, now) for c in requested}

        profile = merge(
            fields,
            requested,
            query,
            outcomes=outcomes,
            policy=self.policy,
            now=now,
            fallback=self.fallback,
        )
        logger.info(
            "aggregated %d categories from %d adapters in %.1fms: confidence=%d quality=%s fallbacks=%d",
            len(requested),
            len(jobs),
            (self._clock() - started) * 1000.0,
            profile.summary.confidence,
            profile.summary.data_quality,
            len(profile.summary.fallback_categories),
        )
        return profile, outcomes

    async def aggregate(
        self,
        query: Query,
        categories: Iterable[object],
        *,
        deadline: Optional[float] = None,
    ) -> UnifiedProfile:
        profile, _ = await self.aggregate_with_outcomes(query, categories, deadline=deadline)
        return profile

    def aggregate_sync(
        self,
        query: Query,
        categories: Iterable[object],
        *,
        deadline: Optional[float] = None,
    ) -> UnifiedProfile:
        return asyncio.run(self.aggregate(query, categories, deadline=deadline))

    def aggregate_with_outcomes_sync(
        self,
        query: Query,
        categories: Iterable[object],
        *,
        deadline: Optional[float] = None,
    ) -> Tuple[UnifiedProfile, Tuple[ProviderOutcome, ...]]:
        return asyncio.run(self.aggregate_with_outcomes(query, categories, deadline=deadline))
