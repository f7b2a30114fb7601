"""Explicit adapter registry handed to the coordinator at startup."""

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from ..categories import CategoryID
from ..errors import ConfigurationError
from .base import ProviderAdapter


class AdapterRegistry:
    def __init__(self, adapters: Iterable[ProviderAdapter] = ()):
        self._by_category: Dict[CategoryID, List[ProviderAdapter]] = {}
        self._names: set[str] = set()
        self._frozen = False
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: ProviderAdapter) -> ProviderAdapter:
        if self._frozen:
            raise ConfigurationError("registry is frozen; register adapters at startup")
        name = adapter.name
        if name in self._names:
            raise ConfigurationError(f"duplicate provider name: {name}")
        self._names.add(name)
        self._by_category.setdefault(adapter.category, []).append(adapter)
        return adapter

    def freeze(self) -> "AdapterRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def adapters_for(self, category: CategoryID) -> Tuple[ProviderAdapter, ...]:
        return tuple(self._by_category.get(CategoryID(category), ()))

    def categories(self) -> List[CategoryID]:
        return [c for c in CategoryID if c in self._by_category]

    def all_adapters(self) -> List[ProviderAdapter]:
        return [a for c in self.categories() for a in self._by_category[c]]

    def __len__(self) -> int:
        return len(self._names)

    async def aclose(self) -> None:
        for adapter in self.all_adapters():
            await adapter.aclose()
