# debug_planner.py
import asyncio
import json

from tripmaker.orchestrator import plan_trip_detailed
from tripmaker.schemas import PlanRequest
from tripmaker.tools.directions import compose_route


async def main():
    payload = {
        "origin": {"lat": 29.0134668, "lon": -81.3074748},
        "searchQueries": "coffee, park, museum",
        "budget": "150",
        "distance": 5,
        "timeRange": {"start": "10:00 AM", "end": "04:00 PM"},
    }
    request = PlanRequest.model_validate(payload)

    # Call planner directly
    plan = await plan_trip_detailed(request.origin, request.search_parameters())
    print("➡️ Planner returned:\n")
    print(json.dumps(plan.model_dump(mode="json"), indent=2))

    route = await compose_route([marker.coordinate for marker in plan.markers])
    print(f"\n➡️ Route has {len(route)} point(s)")


if __name__ == "__main__":
    asyncio.run(main())
