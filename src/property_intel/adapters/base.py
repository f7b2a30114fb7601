from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

from ..errors import AdapterError, ErrorKind
from ..models import ProviderDescriptor, Query
from ..payloads import Payload, is_valid_payload


class ProviderAdapter(ABC):
    """Wraps one external data source for one category.

    `fetch` issues at most one logical request and either returns a payload
    of the category's type or raises `AdapterError`. Adapters may be called
    concurrently for different queries and keep no per-call state.
    """

    def __init__(self, descriptor: ProviderDescriptor):
        self.descriptor = descriptor

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def category(self):
        return self.descriptor.category

    @abstractmethod
    async def fetch(self, query: Query) -> Payload:
        raise NotImplementedError

    async def fetch_with_meta(self, query: Query) -> Tuple[Payload, bool]:
        """Return (payload, served_from_cache)."""

        return await self.fetch(query), False

    async def aclose(self) -> None:
        return None

    def check_payload(self, value: object) -> Payload:
        if not is_valid_payload(self.category, value):
            raise AdapterError(
                ErrorKind.INVALID_RESPONSE,
                f"{self.name} returned {type(value).__name__} for {self.category}",
                provider=self.name,
            )
        return value  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, category={str(self.category)!r})"
