"""Pick one venue per category with the hosted model."""
from __future__ import annotations

import json
from typing import Any, Dict, Optional, Sequence

from openai import OpenAIError
from pydantic import ValidationError

from tripmaker import llm
from tripmaker.schemas import Candidate, RankedSelection, TimeWindow
from tripmaker.settings import get_logger

logger = get_logger(__name__)

MAX_CANDIDATES = 5


def _first_place(payload: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return None
    places = payload.get("places")
    if isinstance(places, list):
        first = places[0] if places else None
        return first if isinstance(first, dict) else None
    if "name" in payload:
        return payload
    return None


def parse_ranked_selection(raw: Optional[str], category: str) -> Optional[RankedSelection]:
    """Turn the model's free-form reply into a selection, or None if it can't.

    Only the shape is checked. The chosen venue is taken as given and is not
    matched against the candidates that were offered.
    """
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except ValueError:
        logger.warning("Parse error for %s: response was not valid JSON", category, exc_info=True)
        return None

    record = _first_place(payload)
    if record is None:
        logger.warning("Parse error for %s: no place object in response", category)
        return None

    record = dict(record)
    if not record.get("category"):
        record["category"] = category
    try:
        return RankedSelection.model_validate(record)
    except ValidationError:
        logger.warning("Parse error for %s: place object failed validation", category, exc_info=True)
        return None


async def select_best_place(
    category: str,
    candidates: Sequence[Candidate],
    budget_share: int,
    radius: float,
    time_window: TimeWindow,
    *,
    model: Optional[str] = None,
) -> Optional[RankedSelection]:
    shortlist = list(candidates)[:MAX_CANDIDATES]
    if not shortlist:
        logger.info("No candidates to rank for '%s'", category)
        return None

    try:
        raw = await llm.request_ranking(category, shortlist, budget_share, radius, time_window, model=model)
    except OpenAIError:
        logger.warning("Ranking request failed for '%s'", category, exc_info=True)
        return None

    selection = parse_ranked_selection(raw, category)
    if selection is not None:
        logger.info("Selected '%s' for %s (ranking %s)", selection.name, category, selection.ranking)
    return selection
