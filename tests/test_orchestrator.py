import asyncio
import json
from typing import Dict, List

import httpx
import pytest

from conftest import fake_openai_client, nominatim_record
from tripmaker import llm, orchestrator
from tripmaker.agents.budget import allocate_budget
from tripmaker.errors import PlanningPreconditionError
from tripmaker.schemas import (
    Candidate,
    Coordinate,
    FormattedLocation,
    RankedSelection,
    SearchParameters,
)

ORIGIN = Coordinate(lat=29.0, lon=-81.3)


def _params(categories, budget=100) -> SearchParameters:
    return SearchParameters(
        search_queries=categories,
        budget=budget,
        distance=5,
        time_range={"start": "10:00 AM", "end": "04:00 PM"},
    )


class FakeSearcher:
    def __init__(self, results: Dict[str, List[Candidate]]):
        self.results = results
        self.calls: List[str] = []

    async def search(self, origin, term, radius, *, advanced=False):
        self.calls.append(term)
        return self.results.get(term, [])


def _candidate(name: str, category: str) -> Candidate:
    return Candidate(name=name, lat=29.01, lon=-81.29, distance=1.4142, category=category, address=f"{name}, DeLand")


def _patch_pipeline(monkeypatch, captured_shares=None, delays=None):
    async def fake_select(category, candidates, budget_share, radius, time_window, *, model=None):
        if captured_shares is not None:
            captured_shares[category] = budget_share
        if delays:
            await asyncio.sleep(delays.get(category, 0))
        if not candidates:
            return None
        best = candidates[0]
        return RankedSelection(**best.model_dump(exclude={"opening_hours"}), explanation="Closest", ranking=1)

    async def fake_enrich(selection):
        return selection.model_copy(update={"image_url": f"https://img.example/{selection.name}.jpg"})

    monkeypatch.setattr(orchestrator, "select_best_place", fake_select)
    monkeypatch.setattr(orchestrator, "enrich_selection", fake_enrich)


def test_all_searches_failing_gives_empty_plan(monkeypatch):
    _patch_pipeline(monkeypatch)
    searcher = FakeSearcher({})

    locations = asyncio.run(orchestrator.plan_trip(ORIGIN, _params(["coffee", "park", "museum"]), searcher=searcher))

    assert locations == []
    assert searcher.calls == ["coffee", "park", "museum"]


def test_share_uses_full_category_count(monkeypatch):
    shares: Dict[str, int] = {}
    _patch_pipeline(monkeypatch, captured_shares=shares)
    searcher = FakeSearcher({"park": [_candidate("Earl Brown Park", "park")]})

    response = asyncio.run(
        orchestrator.plan_trip_detailed(ORIGIN, _params(["coffee", "park", "museum"], budget=100), searcher=searcher)
    )

    assert len(response.locations) == 1
    assert response.budget_per_category == allocate_budget(100, 3) == 33
    assert response.locations[0].budget == "$33"
    assert set(shares.values()) == {33}


def test_results_follow_input_order_not_completion_order(monkeypatch):
    _patch_pipeline(monkeypatch, delays={"coffee": 0.05, "park": 0.0, "museum": 0.02})
    searcher = FakeSearcher(
        {
            "coffee": [_candidate("Blue Door Coffee", "coffee")],
            "park": [_candidate("Earl Brown Park", "park")],
            "museum": [_candidate("African American Museum", "museum")],
        }
    )

    locations = asyncio.run(orchestrator.plan_trip(ORIGIN, _params(["coffee", "park", "museum"]), searcher=searcher))

    assert [loc.name for loc in locations] == ["Blue Door Coffee", "Earl Brown Park", "African American Museum"]
    assert locations[1].image_url == "https://img.example/Earl Brown Park.jpg"


def test_duplicate_categories_are_planned_independently(monkeypatch):
    _patch_pipeline(monkeypatch)
    searcher = FakeSearcher({"coffee": [_candidate("Blue Door Coffee", "coffee")]})

    locations = asyncio.run(orchestrator.plan_trip(ORIGIN, _params(["coffee", "coffee"]), searcher=searcher))

    assert len(locations) == 2
    assert searcher.calls == ["coffee", "coffee"]
    assert all(loc.budget == "$50" for loc in locations)


def test_unexpected_category_failure_does_not_abort_run(monkeypatch):
    _patch_pipeline(monkeypatch)

    class FlakySearcher(FakeSearcher):
        async def search(self, origin, term, radius, *, advanced=False):
            if term == "park":
                raise RuntimeError("boom")
            return await super().search(origin, term, radius)

    searcher = FlakySearcher({"coffee": [_candidate("Blue Door Coffee", "coffee")]})

    locations = asyncio.run(orchestrator.plan_trip(ORIGIN, _params(["park", "coffee"]), searcher=searcher))

    assert [loc.name for loc in locations] == ["Blue Door Coffee"]


def test_cancelled_category_is_left_out(monkeypatch):
    _patch_pipeline(monkeypatch)
    planned_select = orchestrator.select_best_place

    async def cancelling_select(category, candidates, *args, **kwargs):
        if category == "park":
            raise asyncio.CancelledError()
        return await planned_select(category, candidates, *args, **kwargs)

    monkeypatch.setattr(orchestrator, "select_best_place", cancelling_select)
    searcher = FakeSearcher(
        {"park": [_candidate("Earl Brown Park", "park")], "coffee": [_candidate("Blue Door Coffee", "coffee")]}
    )

    locations = asyncio.run(orchestrator.plan_trip(ORIGIN, _params(["park", "coffee"]), searcher=searcher))

    assert [loc.name for loc in locations] == ["Blue Door Coffee"]


def test_empty_category_list_is_rejected(monkeypatch):
    _patch_pipeline(monkeypatch)

    with pytest.raises(PlanningPreconditionError):
        asyncio.run(orchestrator.plan_trip(ORIGIN, _params([]), searcher=FakeSearcher({})))


def test_missing_origin_is_rejected(monkeypatch):
    _patch_pipeline(monkeypatch)

    with pytest.raises(PlanningPreconditionError):
        asyncio.run(orchestrator.plan_trip(None, _params(["coffee"]), searcher=FakeSearcher({})))


def test_format_locations_renders_distance_budget_and_hours():
    selections = [
        RankedSelection(name="A", lat=1.0, lon=2.0, distance=3.14159, address="A st", opening_hours="Mo-Fr 08:00-12:00"),
        RankedSelection(name="B", lat=3.0, lon=4.0, distance=2, address="B st"),
    ]

    locations = orchestrator.format_locations(selections, 25)

    assert locations[0] == FormattedLocation(
        name="A", distance="3.14", address="A st", times="Mo-Fr 08:00-12:00", budget="$25", lat=1.0, lon=2.0
    )
    assert locations[1].distance == "2.00"
    assert locations[1].times == "9:00 AM - 5:00 PM"


def test_trip_markers_are_numbered_in_order():
    locations = orchestrator.format_locations(
        [
            RankedSelection(name="First", lat=1.0, lon=2.0, address="1 First Ave"),
            RankedSelection(name="Second", lat=3.0, lon=4.0, address="2 Second Ave"),
        ],
        10,
    )

    markers = orchestrator.to_trip_markers(locations)

    assert [(m.id, m.order, m.title) for m in markers] == [("marker-0", 1, "First"), ("marker-1", 2, "Second")]
    assert markers[1].coordinate == Coordinate(lat=3.0, lon=4.0)
    assert markers[0].description == "1 First Ave"


def test_location_from_search_result_uses_manual_defaults():
    location = orchestrator.location_from_search_result(nominatim_record("Stetson University", 29.03, -81.3))

    assert location.name == "Stetson University"
    assert location.distance == "0"
    assert location.budget == "$0"
    assert location.times == "9:00 AM - 5:00 PM"
    assert location.lat == 29.03


def test_end_to_end_coffee_found_park_empty(monkeypatch, mock_http):
    coffee_hits = [
        nominatim_record("Blue Door Coffee", 29.01, -81.3, hours="Mo-Su 07:00-15:00"),
        nominatim_record("Bean Counter", 29.0, -81.31),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "nominatim.openstreetmap.org":
            if request.url.params["q"] == "coffee":
                return httpx.Response(200, json=coffee_hits)
            return httpx.Response(200, json=[])
        if request.url.host == "commons.wikimedia.org":
            return httpx.Response(
                200,
                json={"query": {"pages": {"1": {"imageinfo": [{"url": "https://upload.wikimedia.org/cafe.jpg"}]}}}},
            )
        return httpx.Response(404)

    mock_http(handler)
    reply = json.dumps(
        {
            "places": [
                {
                    "name": "Blue Door Coffee",
                    "lat": 29.01,
                    "lon": -81.3,
                    "distance": 1.0,
                    "category": "coffee",
                    "address": "Blue Door Coffee, 100 Main Street, DeLand, Florida, United States",
                    "explanation": "Closest and fits budget",
                    "ranking": 1,
                }
            ]
        }
    )
    client, create = fake_openai_client(reply)
    monkeypatch.setattr(llm, "_client", client)

    locations = asyncio.run(orchestrator.plan_trip(ORIGIN, _params(["coffee", "park"], budget=100)))

    assert len(locations) == 1
    assert locations[0].name == "Blue Door Coffee"
    assert locations[0].budget == "$50"
    assert locations[0].distance == "1.00"
    assert locations[0].times == "9:00 AM - 5:00 PM"
    assert locations[0].image_url == "https://upload.wikimedia.org/cafe.jpg"
    # "park" had no candidates so only one ranking call was made.
    create.assert_awaited_once()
