import asyncio

import pytest

from property_intel.adapters import AdapterRegistry, FakeAdapter
from property_intel.categories import CategoryID
from property_intel.errors import ConfigurationError
from property_intel.models import ProviderDescriptor


def _adapter(name, category=CategoryID.CRIME, weight=0.5):
    return FakeAdapter(ProviderDescriptor(name, category, 1.0, weight))


def test_registration_order_preserved_per_category():
    registry = AdapterRegistry([_adapter("a"), _adapter("w", CategoryID.WEATHER), _adapter("b")])
    assert [a.name for a in registry.adapters_for(CategoryID.CRIME)] == ["a", "b"]
    assert registry.adapters_for(CategoryID.MARKET) == ()
    assert registry.categories() == [CategoryID.CRIME, CategoryID.WEATHER]
    assert len(registry) == 3


def test_duplicate_name_rejected():
    registry = AdapterRegistry([_adapter("a")])
    with pytest.raises(ConfigurationError):
        registry.register(_adapter("a", CategoryID.WEATHER))


def test_frozen_registry_rejects_register():
    registry = AdapterRegistry([_adapter("a")]).freeze()
    assert registry.frozen
    with pytest.raises(ConfigurationError):
        registry.register(_adapter("b"))


def test_aclose_is_safe():
    asyncio.run(AdapterRegistry([_adapter("a")]).aclose())


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "", "category": CategoryID.CRIME, "timeout": 1.0, "reliability_weight": 0.5},
        {"name": "fallback", "category": CategoryID.CRIME, "timeout": 1.0, "reliability_weight": 0.5},
        {"name": "x", "category": CategoryID.CRIME, "timeout": 0, "reliability_weight": 0.5},
        {"name": "x", "category": CategoryID.CRIME, "timeout": 1.0, "reliability_weight": 1.5},
    ],
)
def test_descriptor_validation(kwargs):
    with pytest.raises(ConfigurationError):
        ProviderDescriptor(**kwargs)
