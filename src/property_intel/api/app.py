import logging
from typing import Optional

from fastapi import FastAPI, HTTPException

from property_intel.api.schemas import ProfileRequest, ProfileResponse
from property_intel.categories import ALL_CATEGORIES
from property_intel.coordinator import AggregationCoordinator
from property_intel.errors import ConfigurationError
from property_intel.models import Query
from property_intel.wiring import build_coordinator

logger = logging.getLogger("pi.api")

_coordinator: dict = {"instance": None}


def get_coordinator() -> AggregationCoordinator:
    if _coordinator["instance"] is None:
        _coordinator["instance"] = build_coordinator()
    return _coordinator["instance"]


def set_coordinator(coordinator: Optional[AggregationCoordinator]) -> None:
    """Swap the process coordinator (tests, embedding)."""

    _coordinator["instance"] = coordinator


def health():
    return {"status": "ok"}


def categories():
    return {"categories": [str(c) for c in ALL_CATEGORIES]}


async def build_profile(request: ProfileRequest) -> dict:
    try:
        query = Query(request.latitude, request.longitude, request.address_hint)
        requested = list(ALL_CATEGORIES) if request.categories is None else request.categories
        profile = await get_coordinator().aggregate(query, requested, deadline=request.deadline)
    except ConfigurationError as exc:
        logger.info("rejected profile request: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return profile.to_dict()


app = FastAPI(title="property-intel")


if app:

    @app.get("/health")
    def health_route():
        return health()

    @app.get("/categories")
    def categories_route():
        return categories()

    @app.post("/api/profile", response_model=ProfileResponse)
    async def profile_route(request: ProfileRequest):
        return await build_profile(request)

    @app.on_event("shutdown")
    async def _close_adapters():
        coordinator = _coordinator["instance"]
        if coordinator is not None:
            await coordinator.registry.aclose()
