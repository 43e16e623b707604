from __future__ import annotations

import os
from typing import Any, Dict

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from tripmaker import settings
from tripmaker.errors import PlanningPreconditionError
from tripmaker.orchestrator import location_from_search_result, plan_trip_detailed
from tripmaker.schemas import (
    Coordinate,
    LocationSearchResponse,
    PlanRequest,
    PlanResponse,
    RouteRequest,
    RouteResponse,
)
from tripmaker.tools.directions import compose_route
from tripmaker.tools.geocode import DEFAULT_QUERY_RADIUS, PlaceSearcher

logger = settings.get_logger(__name__)

app = FastAPI(title="TripMaker Planning API")

# The mobile client and local dev servers call straight into the API.
# Operators can scope this via TRIP_PLANNER_ALLOWED_ORIGINS.
raw_origins = os.getenv("TRIP_PLANNER_ALLOWED_ORIGINS") or "*"
allowed_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
if not allowed_origins:
    allowed_origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/api/plan")
async def api_plan(payload: Dict[str, Any] = Body(...)) -> PlanResponse:
    """Plan one stop per requested category around the caller's origin."""
    try:
        request = PlanRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc

    try:
        return await plan_trip_detailed(request.origin, request.search_parameters())
    except PlanningPreconditionError as exc:
        logger.warning("Rejected plan request: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.post("/api/route")
async def api_route(payload: Dict[str, Any] = Body(...)) -> RouteResponse:
    try:
        request = RouteRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc

    coordinates = await compose_route(request.waypoints, settings.GOOGLE_MAPS_API_KEY)
    return RouteResponse(coordinates=coordinates)


@app.get("/api/search")
async def api_search(
    q: str = Query(...),
    lat: float = Query(...),
    lon: float = Query(...),
    radius: float = Query(DEFAULT_QUERY_RADIUS, gt=0),
) -> LocationSearchResponse:
    """Free-text location lookup for adding stops by hand."""
    raw_results = await PlaceSearcher().search_with_escalation(q, Coordinate(lat=lat, lon=lon), radius)
    results = []
    for raw in raw_results:
        try:
            results.append(location_from_search_result(raw))
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed search result %r", raw, exc_info=True)
    return LocationSearchResponse(query=q, results=results)
