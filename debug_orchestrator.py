# debug_orchestrator.py
import asyncio
import json
from datetime import date, timedelta

from itinerary_planner.catalog import DestinationCatalog
from itinerary_planner.orchestrator import generate_itinerary
from itinerary_planner.schemas import TripProfile


async def main():
    profile = TripProfile(
        duration=3,
        start_date=date.today() + timedelta(days=30),
        group_size=4,
        group_type="family",
        total_budget=15000,
        budget_type="mid-range",
        interests=["nature", "culture", "photography"],
    )
    catalog = DestinationCatalog.seeded()
    candidates = catalog.candidates_for(profile.interests, profile.exclude_destinations)

    # Call orchestrator directly; without GEMINI_API_KEY this exercises the fallback
    result = await generate_itinerary(profile, candidates)
    print("➡️ Orchestrator returned:\n")
    print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    asyncio.run(main())
