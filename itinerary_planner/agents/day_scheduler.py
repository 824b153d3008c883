"""Day-by-day schedule synthesis for the rule-based planner."""
from __future__ import annotations

from datetime import timedelta
from typing import List, Sequence, Tuple

from itinerary_planner.agents.budget_planner import daily_budget, percent_of
from itinerary_planner.schemas import (
    Accommodation,
    Activity,
    ActivityDetail,
    ActivityLocation,
    BudgetBreakdown,
    CandidateDestination,
    ItineraryDay,
    Meal,
    Transport,
    TripProfile,
)
from itinerary_planner.settings import get_logger

logger = get_logger(__name__)

REGION_NAME = "Jharkhand"
DESTINATIONS_PER_WINDOW = 2
DEFAULT_ACTIVITY_COST = 100
ACTIVITY_DURATION_MINUTES = 180

# (slot, start, end), cycled by index within a day
SLOT_TIMES: Tuple[Tuple[str, str, str], ...] = (
    ("morning", "09:00", "12:00"),
    ("afternoon", "14:00", "17:00"),
    ("evening", "17:00", "19:00"),
)

BREAKFAST_PERCENT = 10
LUNCH_PERCENT = 15
DINNER_PERCENT = 15
TRANSPORT_PERCENT = 20
ACCOMMODATION_PERCENT = 40

ACTIVITY_ALTERNATIVES = [
    "Photography session",
    "Local guide interaction",
    "Cultural performance if available",
]


def synthesize_days(
    selected: Sequence[CandidateDestination],
    profile: TripProfile,
    breakdown: BudgetBreakdown,
) -> List[ItineraryDay]:
    """Build ``profile.duration`` consecutive days from the selected destinations.

    Day ``i`` covers the window ``selected[i:i + 2]``, so a destination can show
    up on two neighbouring days. Windows that run past the end of the list
    yield leisure days without destination activities.
    """
    per_day = daily_budget(breakdown.total, profile.duration)
    days: List[ItineraryDay] = []

    for index in range(profile.duration):
        window = list(selected[index:index + DESTINATIONS_PER_WINDOW])
        location = window[0].district if window else REGION_NAME
        day = ItineraryDay(
            day_number=index + 1,
            date=profile.start_date + timedelta(days=index),
            title=_day_title(index + 1, window),
            location=location,
            activities=build_activities(window),
            accommodation=Accommodation(
                type="hotel" if index == 0 else "homestay",
                name="Local accommodation",
                location=location if window else "Local area",
                estimated_cost=percent_of(per_day, ACCOMMODATION_PERCENT),
                description="Comfortable local accommodation with basic amenities",
            ),
            meals=_build_meals(per_day),
            transport=Transport(
                mode="Local taxi/bus",
                estimated_cost=percent_of(per_day, TRANSPORT_PERCENT),
                duration="2-3 hours",
                notes="Local transportation between destinations",
            ),
        )
        days.append(day)

    logger.debug(
        "Synthesised %d day(s) from %d destination(s) with daily budget %d",
        len(days),
        len(selected),
        per_day,
    )
    return days


def build_activities(destinations: Sequence[CandidateDestination]) -> List[Activity]:
    activities: List[Activity] = []
    for index, dest in enumerate(destinations):
        slot, start, end = SLOT_TIMES[index % len(SLOT_TIMES)]
        activities.append(
            Activity(
                time_slot=slot,
                start_time=start,
                end_time=end,
                activity=ActivityDetail(
                    type="destination",
                    destination_id=dest.id,
                    title=f"Explore {dest.name}",
                    description=dest.description or dest.short_description,
                    location=ActivityLocation(
                        name=dest.name,
                        coordinates=list(dest.coordinates),
                        district=dest.district,
                    ),
                    estimated_cost=(
                        dest.entry_fee if dest.entry_fee is not None else DEFAULT_ACTIVITY_COST
                    ),
                    estimated_duration=ACTIVITY_DURATION_MINUTES,
                    booking_required=False,
                    cultural_tips=(
                        dest.cultural_significance or "Respect local customs and environment"
                    ),
                    alternatives=list(ACTIVITY_ALTERNATIVES),
                ),
                notes="Visit timing may vary based on weather conditions and local customs",
            )
        )
    return activities


def _build_meals(per_day: int) -> List[Meal]:
    return [
        Meal(
            type="breakfast",
            cuisine="Continental/Local",
            estimated_cost=percent_of(per_day, BREAKFAST_PERCENT),
            recommendations="Local breakfast specialties",
        ),
        Meal(
            type="lunch",
            cuisine="Traditional Jharkhandi",
            estimated_cost=percent_of(per_day, LUNCH_PERCENT),
            recommendations="Try Litti-chokha, Dhuska, or local tribal cuisine",
        ),
        Meal(
            type="dinner",
            cuisine="Local",
            estimated_cost=percent_of(per_day, DINNER_PERCENT),
            recommendations="Traditional dinner with local family or restaurant",
        ),
    ]


def _day_title(day_number: int, window: Sequence[CandidateDestination]) -> str:
    if not window:
        return f"Day {day_number}: Leisure & Local Exploration"
    return f"Day {day_number}: " + " & ".join(dest.name for dest in window)
