# itinerary_planner/orchestrator.py
from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, Dict, List, Sequence

from itinerary_planner.agents.budget_planner import allocate_budget
from itinerary_planner.agents.day_scheduler import synthesize_days
from itinerary_planner.agents.destination_scout import select_destinations
from itinerary_planner.errors import ExternalCallError, GenerationError
from itinerary_planner.llm import build_itinerary_prompt, call_llm
from itinerary_planner.parsing import extract_json_object, validate_itinerary_payload
from itinerary_planner.schemas import (
    CandidateDestination,
    EmergencyInfo,
    GeneratedItinerary,
    GenerationResult,
    TripProfile,
)
from itinerary_planner.settings import Settings, get_logger

logger = get_logger(__name__)

Generator = Callable[[str], Awaitable[str]]

AI_CONFIDENCE = 0.9
BASIC_CONFIDENCE = 0.6

CULTURAL_NOTES = [
    "Respect local tribal customs and traditions",
    "Seek permission before photographing tribal people",
    "Dress modestly when visiting religious sites and tribal villages",
    'Learn basic greetings: "Johar" for tribal communities, "Namaskar" in Hindi',
    "Remove shoes before entering temples and traditional homes",
]

TRAVEL_TIPS = [
    "Carry sufficient cash as card acceptance is limited in rural areas",
    "Book accommodation in advance during peak winter season (Nov-Feb)",
    "Hire local guides for authentic tribal cultural experiences",
    "Pack warm clothes for hill stations like Netarhat",
    "Carry insect repellent for forest areas and waterfalls",
]

LOCAL_EXPERIENCES = [
    "Tribal village visits with proper permissions",
    "Traditional handicraft workshops",
    "Local festival participation opportunities",
    "Authentic cooking classes with tribal families",
]

SEASONAL_CONSIDERATIONS = [
    "Best time: October to March (winter season)",
    "Avoid: Heavy monsoons July to September",
    "Wildlife viewing: March to May",
    "Festival seasons: Various throughout year",
]

_ADVISORY_KEYS = ("culturalNotes", "travelTips", "localExperiences", "seasonalConsiderations")


# ---------- rule-based planner (no model, deterministic) ----------
def plan_basic_itinerary(
    profile: TripProfile,
    candidates: Sequence[CandidateDestination],
) -> GeneratedItinerary:
    """Score, select, budget and schedule without the hosted model."""
    selected = select_destinations(candidates, profile.duration, profile.interests)
    breakdown = allocate_budget(profile.total_budget)
    days = synthesize_days(selected, profile, breakdown)

    logger.info(
        "Basic itinerary: %d day(s), %d destination(s), budget %d split as %s",
        len(days),
        len(selected),
        profile.total_budget,
        breakdown.model_dump(),
    )
    return GeneratedItinerary(
        title=f"{profile.duration}-Day Jharkhand Cultural & Natural Heritage Tour",
        description=(
            "A carefully crafted journey through Jharkhand's pristine natural beauty, "
            "rich tribal culture, and spiritual heritage"
        ),
        total_estimated_cost=profile.total_budget,
        budget_breakdown=breakdown,
        days=days,
        cultural_notes=list(CULTURAL_NOTES),
        travel_tips=list(TRAVEL_TIPS),
        local_experiences=list(LOCAL_EXPERIENCES),
        seasonal_considerations=list(SEASONAL_CONSIDERATIONS),
        emergency_info=EmergencyInfo(),
    )


# ---------- model first, rule-based fallback ----------
async def generate_itinerary(
    profile: TripProfile,
    candidates: Sequence[CandidateDestination],
    *,
    generator: Generator | None = None,
    settings: Settings | None = None,
) -> GenerationResult:
    """Try the hosted model once; on any recoverable failure use the basic planner.

    Errors raised by the basic planner are not caught: they indicate a broken
    invariant rather than an unreliable upstream.
    """
    started = time.perf_counter()
    settings = settings or Settings.from_env()
    eligible = _eligible(profile, candidates)
    logger.info(
        "Generation start: %d-day %s trip from %s, budget %d (%s), %d candidate(s)",
        profile.duration,
        profile.group_type,
        profile.start_date.isoformat(),
        profile.total_budget,
        profile.budget_type,
        len(eligible),
    )

    try:
        raw = await _attempt_model(profile, eligible, generator, settings)
        payload = extract_json_object(raw)
        validate_itinerary_payload(payload)
    except GenerationError as exc:
        logger.warning(
            "Model itinerary unusable (%s: %s); falling back to basic algorithm",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        itinerary = plan_basic_itinerary(profile, eligible).model_dump(mode="json", by_alias=True)
        method = "basic-algorithm"
        confidence = BASIC_CONFIDENCE
        model = None
    else:
        itinerary = _with_advisory_defaults(payload)
        method = "gemini-ai"
        confidence = AI_CONFIDENCE
        model = settings.model

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    logger.info("Itinerary generated in %dms using %s", elapsed_ms, method)
    return GenerationResult(
        itinerary=itinerary,
        generation_method=method,
        confidence=confidence,
        processing_time_ms=elapsed_ms,
        model=model,
        destinations_considered=len(eligible),
    )


async def _attempt_model(
    profile: TripProfile,
    candidates: Sequence[CandidateDestination],
    generator: Generator | None,
    settings: Settings,
) -> str:
    prompt = build_itinerary_prompt(profile, candidates)
    try:
        if generator is not None:
            return await generator(prompt)
        return await call_llm(prompt, settings)
    except GenerationError:
        raise
    except Exception as exc:
        logger.exception("Model call raised unexpectedly: %s", exc)
        raise ExternalCallError(str(exc)) from exc


# ---------- helpers ----------
def _eligible(
    profile: TripProfile,
    candidates: Sequence[CandidateDestination],
) -> List[CandidateDestination]:
    excluded = set(profile.exclude_destinations)
    if not excluded:
        return list(candidates)
    return [dest for dest in candidates if dest.id not in excluded]


def _with_advisory_defaults(payload: Dict[str, Any]) -> Dict[str, Any]:
    itinerary = dict(payload)
    for key in _ADVISORY_KEYS:
        if not isinstance(itinerary.get(key), list):
            itinerary[key] = []
    if not isinstance(itinerary.get("emergencyInfo"), dict):
        itinerary["emergencyInfo"] = EmergencyInfo().model_dump(by_alias=True)
    return itinerary
