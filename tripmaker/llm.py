# tripmaker/llm.py
import json
from typing import List, Optional, Sequence

import httpx
from openai import AsyncOpenAI

from tripmaker import settings
from tripmaker.schemas import Candidate, TimeWindow, EXPLANATION_MAX_WORDS

logger = settings.get_logger(__name__)


def build_client(api_key: str, http_client: Optional[httpx.AsyncClient] = None) -> AsyncOpenAI:
    # A failed ranking call ends that category's step; the SDK must not retry it.
    return AsyncOpenAI(
        api_key=api_key,
        max_retries=0,
        timeout=settings.HTTP_TIMEOUT,
        http_client=http_client,
    )


if settings.OPENAI_API_KEY:
    _client: Optional[AsyncOpenAI] = build_client(settings.OPENAI_API_KEY)
else:  # pragma: no cover - exercised indirectly in tests without API key
    _client = None
    logger.warning("OPENAI_API_KEY not set; venue ranking will yield no selections")

RANKING_SCHEMA = (
    '{"places":[{"name":"","lat":0,"lon":0,"distance":0,"category":"",'
    '"address":"","explanation":"","ranking":""}]}'
)

RANKING_TEMPLATE = """Return JSON with exactly one place: {schema}
Select the best {category} place from: {candidates}.
Requirements:
- Fixed budget: ${budget}
- Distance: {radius}km
- Time: {start}-{end}
- Hours: {hours}
Keep explanation {max_words} words max.
You must return JSON with properties in exact order: name MUST be first
"""


def _hours_lines(candidates: Sequence[Candidate]) -> str:
    return "".join(f"\n{c.name}: {c.opening_hours}" for c in candidates)


def build_ranking_prompt(
    category: str,
    candidates: Sequence[Candidate],
    budget_share: int,
    radius: float,
    time_window: TimeWindow,
) -> str:
    """Render the single-venue ranking prompt for one category."""
    serialised: List[dict] = [c.model_dump(mode="json") for c in candidates]
    return RANKING_TEMPLATE.format(
        schema=RANKING_SCHEMA,
        category=category,
        candidates=json.dumps(serialised),
        budget=budget_share,
        radius=radius,
        start=time_window.start,
        end=time_window.end,
        hours=_hours_lines(candidates),
        max_words=EXPLANATION_MAX_WORDS,
    )


async def request_ranking(
    category: str,
    candidates: Sequence[Candidate],
    budget_share: int,
    radius: float,
    time_window: TimeWindow,
    *,
    model: Optional[str] = None,
) -> Optional[str]:
    """Ask the model to pick one venue; return its raw text, or None without a client.

    The text is not trusted to be JSON; callers parse it themselves.
    """
    if _client is None:
        logger.info("Skipping ranking for '%s' (missing client or API key)", category)
        return None

    model = model or settings.RANKING_MODEL
    logger.info("Invoking LLM model %s to rank %d '%s' candidate(s)", model, len(candidates), category)
    resp = await _client.chat.completions.create(
        model=model,
        messages=[
            {
                "role": "user",
                "content": build_ranking_prompt(category, candidates, budget_share, radius, time_window),
            }
        ],
        max_tokens=250,
        temperature=0.7,
        response_format={"type": "json_object"},
    )
    return resp.choices[0].message.content or ""
