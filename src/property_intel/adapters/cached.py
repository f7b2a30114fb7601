from __future__ import annotations

import logging
from typing import Tuple

from ..cache import GeoCache
from ..models import Query
from ..payloads import Payload
from .base import ProviderAdapter

logger = logging.getLogger("pi.cache")


class CachingAdapter(ProviderAdapter):
    """Serves fresh nearby results from a GeoCache before calling `inner`.

    Shares the inner adapter's descriptor. Only payloads of the category's
    type are stored; failures and wrong-typed results pass through uncached.
    """

    def __init__(self, inner: ProviderAdapter, cache: GeoCache):
        super().__init__(inner.descriptor)
        self.inner = inner
        self.cache = cache

    async def fetch_with_meta(self, query: Query) -> Tuple[Payload, bool]:
        payload, hit = self.cache.lookup(query.latitude, query.longitude)
        if hit:
            logger.debug("cache hit %s (%.4f, %.4f)", self.name, query.latitude, query.longitude)
            return self.check_payload(payload), True
        payload = self.check_payload(await self.inner.fetch(query))
        self.cache.store(query.latitude, query.longitude, payload)
        return payload, False

    async def fetch(self, query: Query) -> Payload:
        payload, _ = await self.fetch_with_meta(query)
        return payload

    async def aclose(self) -> None:
        await self.inner.aclose()
