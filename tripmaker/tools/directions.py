"""Driving routes between ordered trip stops."""
from __future__ import annotations

from typing import List, Optional, Sequence

import httpx

from tripmaker import settings
from tripmaker.schemas import Coordinate
from tripmaker.tools.polyline import decode_polyline

logger = settings.get_logger(__name__)


def _latlon(point: Coordinate) -> str:
    return f"{point.lat},{point.lon}"


async def compose_route(waypoints: Sequence[Coordinate], api_key: Optional[str] = None) -> List[Coordinate]:
    """Fetch a route through ``waypoints`` in order and decode its geometry.

    The first stop is the origin, the last the destination and everything in
    between is passed as an ordered via-list. Fewer than two stops, or any
    failure along the way, gives an empty route.
    """
    if len(waypoints) < 2:
        return []

    key = api_key or settings.GOOGLE_MAPS_API_KEY
    if not key:
        logger.warning("GOOGLE_MAPS_API_KEY not set; skipping route for %d stops", len(waypoints))
        return []

    params = {
        "origin": _latlon(waypoints[0]),
        "destination": _latlon(waypoints[-1]),
        "waypoints": "|".join(_latlon(wp) for wp in waypoints[1:-1]),
        "key": key,
    }
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as client:
            response = await client.get(settings.DIRECTIONS_URL, params=params)
            response.raise_for_status()
            data = response.json()
        encoded = data["routes"][0]["overview_polyline"]["points"]
        points = decode_polyline(encoded)
    except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError):
        logger.warning("Route error for %d stops", len(waypoints), exc_info=True)
        return []

    logger.info("Decoded route with %d points through %d stops", len(points), len(waypoints))
    return [Coordinate(lat=lat, lon=lon) for lat, lon in points]
