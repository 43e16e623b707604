from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import math

import httpx

from tripmaker import settings
from tripmaker.schemas import Candidate, Coordinate, DEFAULT_OPENING_HOURS

logger = settings.get_logger(__name__)

KM_TO_DEGREE = 0.01
MAX_RESULTS = 5
MIN_QUERY_LENGTH = 3
DEFAULT_QUERY_RADIUS = 0.1
# The last escalation only runs while the widened radius is still below this.
ESCALATION_CEILING = 10

_SEARCH_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError)


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Straight-line separation in degree space, rescaled to kilometres.

    Good enough to sort nearby venues; not a geodesic distance.
    """
    dx = lat2 - lat1
    dy = lon2 - lon1
    distance_in_degrees = math.sqrt(dx * dx + dy * dy)
    return distance_in_degrees / KM_TO_DEGREE


@dataclass(frozen=True)
class SearchAttempt:
    radius: float
    advanced: bool


def escalation_plan(radius: float) -> Tuple[SearchAttempt, ...]:
    """Attempts for a free-text search: basic, then up to two wider advanced ones."""
    attempts = [SearchAttempt(radius, False), SearchAttempt(radius * 1000, True)]
    if radius * 1000 < ESCALATION_CEILING:
        attempts.append(SearchAttempt(radius * 10000, True))
    return tuple(attempts)


def viewbox(origin: Coordinate, radius: float) -> str:
    return ",".join(
        str(v)
        for v in (origin.lon - radius, origin.lat - radius, origin.lon + radius, origin.lat + radius)
    )


def to_candidate(raw: Dict[str, Any], origin: Coordinate, category: str) -> Candidate:
    lat = float(raw["lat"])
    lon = float(raw["lon"])
    display_name = raw.get("display_name") or ""
    extratags = raw.get("extratags") or {}
    return Candidate(
        name=display_name.split(",")[0].strip(),
        lat=lat,
        lon=lon,
        distance=calculate_distance(origin.lat, origin.lon, lat, lon),
        category=category.strip(),
        address=display_name,
        opening_hours=extratags.get("opening_hours") or DEFAULT_OPENING_HOURS,
    )


class PlaceSearcher:
    """
    Nominatim place search. ``search`` feeds the planner one category at a
    time; ``search_with_escalation`` backs the free-text location box.
    """

    def __init__(self, *, user_agent: Optional[str] = None, timeout: Optional[float] = None):
        self.user_agent = user_agent or settings.USER_AGENT
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT

    def _params(
        self,
        query: str,
        origin: Coordinate,
        radius: float,
        *,
        advanced: bool,
        bounded: bool,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "format": "json",
            "q": query,
            "lat": origin.lat,
            "lon": origin.lon,
            "viewbox": viewbox(origin, radius),
            "bounded": 1 if bounded else 0,
            "limit": MAX_RESULTS,
            "addressdetails": 1,
            "extratags": 1,
            "accept-language": "en",
        }
        if advanced:
            params.update({"dedupe": 1, "fuzzy": 1})
        return params

    async def _fetch(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json", "Accept-Language": "en"}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(settings.NOMINATIM_SEARCH_URL, params=params, headers=headers)
            response.raise_for_status()
            data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"Unexpected search payload of type {type(data).__name__}")
        return data[:MAX_RESULTS]

    async def search(
        self,
        origin: Coordinate,
        term: str,
        radius: float,
        *,
        advanced: bool = False,
    ) -> List[Candidate]:
        """Return up to five candidates for ``term`` inside the box around ``origin``.

        Any transport or payload problem is logged and reported as no results
        so the remaining categories can still be planned.
        """
        params = self._params(term, origin, radius, advanced=advanced, bounded=True)
        try:
            raw_results = await self._fetch(params)
            candidates = [to_candidate(raw, origin, term) for raw in raw_results]
        except _SEARCH_ERRORS:
            logger.warning("Place search failed for '%s'", term, exc_info=True)
            return []
        logger.info(
            "Place search '%s' found %d candidate(s) within radius %s", term, len(candidates), radius
        )
        return candidates

    async def search_with_escalation(
        self,
        query: str,
        origin: Coordinate,
        radius: float = DEFAULT_QUERY_RADIUS,
    ) -> List[Dict[str, Any]]:
        """Free-text search that widens and loosens the query while it finds nothing."""
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH:
            logger.info("Search skipped - query too short")
            return []

        for attempt in escalation_plan(radius):
            params = self._params(query, origin, attempt.radius, advanced=attempt.advanced, bounded=False)
            try:
                results = await self._fetch(params)
            except _SEARCH_ERRORS:
                logger.warning("Location search failed for '%s'", query, exc_info=True)
                return []
            logger.info(
                "Found %d results with %s search at radius %s",
                len(results),
                "advanced" if attempt.advanced else "basic",
                attempt.radius,
            )
            if results:
                return results
        return []
