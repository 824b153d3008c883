# itinerary_planner/llm.py
import json
from typing import Any, Dict, List, Sequence

from openai import AsyncOpenAI, OpenAIError

from itinerary_planner.errors import ExternalCallError
from itinerary_planner.schemas import CandidateDestination, TripProfile
from itinerary_planner.settings import Settings, get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are an expert travel planner specializing in Jharkhand tourism in India.
Plan only with the destinations provided.
Estimate every cost in Indian Rupees and stay within the stated budget.
Respect tribal customs and keep recommendations culturally sensitive.
Return ONLY one valid JSON object. No markdown, no commentary.
"""

USER_TEMPLATE = """Create a detailed {duration}-day itinerary.

Trip parameters:
- Dates: {start_date} to {end_date}
- Group: {group_type} ({group_size} people)
- Total budget: INR {total_budget} ({budget_type} category)
- User location: {user_location}

Preferences:
- Primary interests: {interests}
- Secondary interests: {secondary}
- Budget priority: {priorities}
- Language preference: {languages}
- Dietary restrictions: {diet}
- Accessibility needs: {accessibility}

Available destinations:
{destinations}

Response schema (camelCase keys):
{schema}
"""

RESPONSE_SCHEMA: Dict[str, Any] = {
    "title": "string",
    "description": "string",
    "totalEstimatedCost": 0,
    "budgetBreakdown": {
        "accommodation": 0,
        "transport": 0,
        "food": 0,
        "activities": 0,
        "miscellaneous": 0,
    },
    "days": [
        {
            "dayNumber": 1,
            "date": "YYYY-MM-DD",
            "title": "string",
            "location": "district",
            "weather": "string",
            "activities": [
                {
                    "timeSlot": "morning",
                    "startTime": "09:00",
                    "endTime": "12:00",
                    "activity": {
                        "type": "destination",
                        "destinationId": "id from the list",
                        "title": "string",
                        "description": "string",
                        "location": {"name": "string", "coordinates": [0.0, 0.0], "district": "string"},
                        "estimatedCost": 0,
                        "estimatedDuration": 180,
                        "bookingRequired": False,
                        "culturalTips": "string",
                        "alternatives": ["string"],
                    },
                    "notes": "string",
                }
            ],
            "accommodation": {"type": "homestay", "name": "string", "location": "string", "estimatedCost": 0},
            "meals": [{"type": "lunch", "cuisine": "string", "estimatedCost": 0, "recommendations": "string"}],
            "transport": {"mode": "string", "estimatedCost": 0, "duration": "string", "notes": "string"},
            "totalDayCost": 0,
        }
    ],
    "culturalNotes": ["string"],
    "travelTips": ["string"],
    "emergencyInfo": {"importantNumbers": ["string"], "nearestHospitals": ["string"], "embassyContacts": "string"},
    "localExperiences": ["string"],
    "seasonalConsiderations": ["string"],
}


def _join(values: Sequence[str] | None, default: str) -> str:
    items = [str(v) for v in (values or []) if v]
    return ", ".join(items) if items else default


def _build_destinations(candidates: Sequence[CandidateDestination]) -> str:
    """Format destinations for inclusion in the prompt."""
    parts: List[str] = []
    for dest in candidates:
        fee = dest.entry_fee if dest.entry_fee is not None else 0
        parts.append(
            f"- [{dest.id}] {dest.name} ({dest.category}, {dest.district}): {dest.short_description}\n"
            f"    Interest tags: {_join(dest.tags, 'none')}\n"
            f"    Best time: {_join(dest.best_time_to_visit, 'Year-round')}\n"
            f"    Entry fee: INR {fee}\n"
            f"    Facilities: {_join(dest.facilities, 'Basic')}\n"
            f"    Cultural significance: {dest.cultural_significance or 'General tourism'}"
        )
    return "\n".join(parts)


def _describe_needs(needs: Dict[str, Any] | None) -> str:
    """Render accessibility flags such as ``{"wheelchairAccess": True}``."""
    parts: List[str] = []
    for key, value in (needs or {}).items():
        if value is True:
            parts.append(str(key))
        elif value:
            rendered = _join(value, "") if isinstance(value, (list, tuple)) else str(value)
            parts.append(f"{key}: {rendered}")
    return ", ".join(parts) if parts else "None"


def build_itinerary_prompt(profile: TripProfile, candidates: Sequence[CandidateDestination]) -> str:
    prefs = profile.preferences
    return USER_TEMPLATE.format(
        duration=profile.duration,
        start_date=profile.start_date.isoformat(),
        end_date=profile.end_date.isoformat(),
        group_type=profile.group_type,
        group_size=profile.group_size,
        total_budget=profile.total_budget,
        budget_type=profile.budget_type,
        user_location=profile.user_location or "Not specified",
        interests=_join(profile.interests, "General sightseeing"),
        secondary=_join(prefs.secondary_interests, "None"),
        priorities=_join(prefs.budget_priorities, "Balanced"),
        languages=_join(prefs.language_preference, "English, Hindi"),
        diet=_join(prefs.dietary_restrictions, "None"),
        accessibility=_describe_needs(prefs.accessibility_needs),
        destinations=_build_destinations(candidates),
        schema=json.dumps(RESPONSE_SCHEMA, indent=2),
    )


def _make_client(settings: Settings) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=settings.api_key, base_url=settings.base_url, timeout=settings.timeout)


async def call_llm(prompt: str, settings: Settings | None = None) -> str:
    """Send ``prompt`` to the hosted model and return its raw text.

    Any provider failure, including a missing API key or an empty completion,
    surfaces as ``ExternalCallError``. The client is closed before returning.
    """
    settings = settings or Settings.from_env()
    if not settings.api_key:
        raise ExternalCallError("GEMINI_API_KEY not set; hosted model unavailable")

    logger.info("Invoking model %s (prompt %d chars)", settings.model, len(prompt))
    try:
        async with _make_client(settings) as client:
            resp = await client.chat.completions.create(
                model=settings.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=settings.temperature,
                max_tokens=settings.max_output_tokens,
                top_p=0.8,
                response_format={"type": "json_object"},
            )
    except OpenAIError as exc:
        raise ExternalCallError(f"Model call failed: {exc}") from exc

    if not resp.choices:
        raise ExternalCallError("Model returned no choices")
    raw = resp.choices[0].message.content
    if not raw:
        raise ExternalCallError("Model returned an empty response")

    logger.info("Model response received (%d chars)", len(raw))
    return raw
