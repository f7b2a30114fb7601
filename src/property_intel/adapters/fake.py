from __future__ import annotations

import asyncio
from typing import Callable, Optional

from ..errors import AdapterError, ErrorKind
from ..fallback import generate_fallback
from ..models import ProviderDescriptor, Query
from ..payloads import Payload
from .base import ProviderAdapter


class FakeAdapter(ProviderAdapter):
    """Scripted adapter for demo mode and tests.

    Sleeps `delay` seconds, then either raises `AdapterError(fail_with)` or
    returns `payload_fn(category, query)`. A delay past the descriptor
    timeout simulates a hung source. `calls` counts fetches for test
    assertions and is the only state the adapter keeps.
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        *,
        delay: float = 0.0,
        fail_with: Optional[ErrorKind] = None,
        payload_fn: Callable[..., Payload] = generate_fallback,
    ):
        super().__init__(descriptor)
        self.delay = float(delay)
        self.fail_with = fail_with
        self.payload_fn = payload_fn
        # single event loop only; no lock
        self.calls = 0

    async def fetch(self, query: Query) -> Payload:
        self.calls += 1
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise AdapterError(self.fail_with, "scripted failure", provider=self.name)
        return self.check_payload(self.payload_fn(self.category, query))
