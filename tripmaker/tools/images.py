"""Representative venue images from Wikimedia Commons."""
from __future__ import annotations

from typing import Any, Dict

import httpx

from tripmaker import settings
from tripmaker.schemas import RankedSelection

logger = settings.get_logger(__name__)

IMAGE_SEARCH_RADIUS_M = 100
IMAGE_WIDTH = 400


async def fetch_place_image(lat: float, lon: float) -> str:
    """Return the URL of the first Commons image near the point, or ""."""
    params: Dict[str, Any] = {
        "action": "query",
        "format": "json",
        "prop": "imageinfo",
        "generator": "geosearch",
        "iiurlwidth": IMAGE_WIDTH,
        "iiprop": "url",
        "ggscoord": f"{lat}|{lon}",
        "ggsradius": IMAGE_SEARCH_RADIUS_M,
        "ggslimit": 1,
        "origin": "*",
    }
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as client:
            response = await client.get(
                settings.COMMONS_API_URL, params=params, headers={"User-Agent": settings.USER_AGENT}
            )
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError):
        logger.warning("Error fetching image near %s,%s", lat, lon, exc_info=True)
        return ""

    return _first_image_url(data)


def _first_image_url(data: Any) -> str:
    query = data.get("query") if isinstance(data, dict) else None
    if not isinstance(query, dict):
        return ""
    pages = query.get("pages")
    if not isinstance(pages, dict) or not pages:
        return ""
    first_page = next(iter(pages.values()))
    if not isinstance(first_page, dict):
        return ""
    image_info = first_page.get("imageinfo")
    if not isinstance(image_info, list) or not image_info or not isinstance(image_info[0], dict):
        return ""
    # iiurlwidth makes Commons add a scaled "thumburl" next to the original.
    return image_info[0].get("thumburl") or image_info[0].get("url") or ""


async def enrich_selection(selection: RankedSelection) -> RankedSelection:
    image_url = await fetch_place_image(selection.lat, selection.lon)
    return selection.model_copy(update={"image_url": image_url})
