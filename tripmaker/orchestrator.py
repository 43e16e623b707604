# tripmaker/orchestrator.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence
import asyncio

from tripmaker.agents.budget import allocate_budget
from tripmaker.agents.ranking_selector import select_best_place
from tripmaker.errors import PlanningPreconditionError
from tripmaker.schemas import (
    Coordinate,
    FormattedLocation,
    PlanResponse,
    RankedSelection,
    SearchParameters,
    TripMarker,
)
from tripmaker.settings import get_logger
from tripmaker.tools.geocode import PlaceSearcher
from tripmaker.tools.images import enrich_selection

logger = get_logger(__name__)

DEFAULT_TIMES = "9:00 AM - 5:00 PM"


def format_locations(selections: Sequence[RankedSelection], budget_per_category: int) -> List[FormattedLocation]:
    return [
        FormattedLocation(
            name=place.name,
            distance=f"{place.distance:.2f}",
            address=place.address,
            times=place.opening_hours or DEFAULT_TIMES,
            budget=f"${budget_per_category}",
            lat=place.lat,
            lon=place.lon,
            image_url=place.image_url or "",
        )
        for place in selections
    ]


def location_from_search_result(raw: Dict[str, Any]) -> FormattedLocation:
    """Stop added by hand from the free-text search box; it has no budget yet."""
    display_name = raw.get("display_name") or ""
    return FormattedLocation(
        name=display_name.split(",")[0].strip(),
        distance="0",
        address=display_name,
        times=DEFAULT_TIMES,
        budget="$0",
        lat=float(raw["lat"]),
        lon=float(raw["lon"]),
    )


def to_trip_markers(locations: Sequence[FormattedLocation]) -> List[TripMarker]:
    return [
        TripMarker(
            id=f"marker-{index}",
            coordinate=Coordinate(lat=location.lat, lon=location.lon),
            title=location.name,
            description=location.address,
            order=index + 1,
        )
        for index, location in enumerate(locations)
    ]


async def _plan_category(
    searcher: PlaceSearcher,
    origin: Coordinate,
    category: str,
    params: SearchParameters,
    budget_share: int,
) -> Optional[RankedSelection]:
    candidates = await searcher.search(origin, category, params.distance)
    selection = await select_best_place(
        category, candidates, budget_share, params.distance, params.time_range
    )
    if selection is None:
        return None
    return await enrich_selection(selection)


async def plan_trip_detailed(
    origin: Optional[Coordinate],
    params: SearchParameters,
    *,
    searcher: Optional[PlaceSearcher] = None,
) -> PlanResponse:
    """Search, rank and enrich one venue per category.

    Categories run concurrently but the result keeps the order they were
    given in. A category whose search or ranking fails is left out; only bad
    inputs (no origin, no categories) reject the call.
    """
    if origin is None:
        raise PlanningPreconditionError("An origin is required to plan a trip")
    categories = list(params.search_queries)
    if not categories:
        raise PlanningPreconditionError("At least one category is required to plan a trip")

    # Split against every requested category, even ones that end up empty.
    budget_share = allocate_budget(params.budget, len(categories))
    searcher = searcher or PlaceSearcher()

    logger.info(
        "Planning trip from %.5f,%.5f for %s with budget %s (%s per category), radius %s, %s-%s",
        origin.lat,
        origin.lon,
        ", ".join(categories),
        params.budget,
        budget_share,
        params.distance,
        params.time_range.start,
        params.time_range.end,
    )

    results = await asyncio.gather(
        *[_plan_category(searcher, origin, category, params, budget_share) for category in categories],
        return_exceptions=True,
    )

    selections: List[RankedSelection] = []
    for category, result in zip(categories, results):
        if isinstance(result, BaseException):
            logger.warning("Planning failed for category '%s'", category, exc_info=result)
            continue
        if result is None:
            logger.info("No venue selected for category '%s'", category)
            continue
        selections.append(result)

    locations = format_locations(selections, budget_share)
    logger.info("Planned %d of %d stop(s)", len(locations), len(categories))
    return PlanResponse(
        locations=locations,
        markers=to_trip_markers(locations),
        budget_per_category=budget_share,
        categories=len(categories),
    )


async def plan_trip(
    origin: Optional[Coordinate],
    params: SearchParameters,
    *,
    searcher: Optional[PlaceSearcher] = None,
) -> List[FormattedLocation]:
    response = await plan_trip_detailed(origin, params, searcher=searcher)
    return response.locations
