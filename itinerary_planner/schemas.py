import datetime as dt
from datetime import date, timedelta
from typing import Any, Dict, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

GroupType = Literal["solo", "couple", "family", "friends", "corporate"]
BudgetType = Literal["budget", "mid-range", "luxury"]
TimeSlot = Literal["early-morning", "morning", "afternoon", "evening", "night"]
GenerationMethod = Literal["gemini-ai", "basic-algorithm"]
ItineraryStatus = Literal["draft", "generated", "customized", "finalized", "archived"]

MIN_BUDGET_TOTAL = 1000
MIN_BUDGET_PER_DAY = 500


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ------- Trip input -------
class TripPreferences(CamelModel):
    secondary_interests: List[str] = Field(default_factory=list)
    budget_priorities: List[str] = Field(default_factory=lambda: ["accommodation", "activities"])
    guided_vs_independent: str = "mixed"
    language_preference: List[str] = Field(default_factory=lambda: ["english", "hindi"])
    dietary_restrictions: List[str] = Field(default_factory=list)
    accessibility_needs: Dict[str, Any] = Field(default_factory=dict)


class TripProfile(CamelModel):
    duration: int = Field(..., ge=1, le=30)
    start_date: date
    group_size: int = Field(1, ge=1, le=50)
    group_type: GroupType = "solo"
    total_budget: int = Field(..., ge=MIN_BUDGET_TOTAL)
    budget_type: BudgetType = "mid-range"
    interests: List[str] = Field(default_factory=list)
    exclude_destinations: List[str] = Field(default_factory=list)
    preferences: TripPreferences = Field(default_factory=TripPreferences)
    user_location: Optional[str] = None

    @model_validator(mode="after")
    def _budget_covers_duration(self) -> "TripProfile":
        minimum = self.duration * MIN_BUDGET_PER_DAY
        if self.total_budget < minimum:
            raise ValueError(
                f"Budget too low. Minimum {minimum} required for {self.duration} days"
            )
        return self

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=self.duration - 1)


# ------- Destinations -------
class CandidateDestination(CamelModel):
    id: str
    name: str
    district: str
    category: str
    tags: List[str] = Field(default_factory=list)
    rating: Optional[float] = Field(None, ge=0, le=5)
    featured: bool = False
    cultural_significance: Optional[str] = None
    entry_fee: Optional[int] = Field(None, ge=0)
    facilities: List[str] = Field(default_factory=list)
    coordinates: List[float] = Field(default_factory=lambda: [0.0, 0.0], min_length=2, max_length=2)  # [lng, lat]
    description: str = ""
    short_description: str = ""
    best_time_to_visit: List[str] = Field(default_factory=list)
    status: Literal["draft", "published", "archived"] = "published"


class ScoredDestination(BaseModel):
    destination: CandidateDestination
    score: float


# ------- Itinerary output -------
class BudgetBreakdown(CamelModel):
    accommodation: int = Field(..., ge=0)
    transport: int = Field(..., ge=0)
    food: int = Field(..., ge=0)
    activities: int = Field(..., ge=0)
    miscellaneous: int = Field(..., ge=0)

    @property
    def total(self) -> int:
        return self.accommodation + self.transport + self.food + self.activities + self.miscellaneous


class ActivityLocation(CamelModel):
    name: str
    coordinates: List[float] = Field(default_factory=lambda: [0.0, 0.0])
    district: Optional[str] = None


class ActivityDetail(CamelModel):
    type: str = "destination"
    destination_id: Optional[str] = None
    title: str
    description: str = ""
    location: ActivityLocation
    estimated_cost: int = Field(..., ge=0)
    estimated_duration: int = Field(..., ge=0)
    booking_required: bool = False
    cultural_tips: str = ""
    alternatives: List[str] = Field(default_factory=list)


class Activity(CamelModel):
    time_slot: TimeSlot
    start_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    end_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    activity: ActivityDetail
    notes: str = ""

    @model_validator(mode="after")
    def _end_after_start(self) -> "Activity":
        # HH:MM compares correctly as text
        if self.end_time <= self.start_time:
            raise ValueError(f"endTime {self.end_time} must be after startTime {self.start_time}")
        return self


class Accommodation(CamelModel):
    type: Literal["hotel", "homestay", "resort", "guesthouse", "camping"] = "hotel"
    name: str
    location: str
    estimated_cost: int = Field(..., ge=0)
    description: str = ""


class Meal(CamelModel):
    type: Literal["breakfast", "lunch", "dinner", "snack"]
    cuisine: str = ""
    estimated_cost: int = Field(..., ge=0)
    recommendations: str = ""


class Transport(CamelModel):
    mode: str
    estimated_cost: int = Field(..., ge=0)
    duration: str = ""
    notes: str = ""


class ItineraryDay(CamelModel):
    day_number: int = Field(..., ge=1)
    date: dt.date
    title: str
    location: str
    weather: str = "Pleasant"
    activities: List[Activity] = Field(default_factory=list)
    accommodation: Optional[Accommodation] = None
    meals: List[Meal] = Field(default_factory=list)
    transport: Optional[Transport] = None

    @computed_field(alias="totalDayCost")  # type: ignore[misc]
    @property
    def total_day_cost(self) -> int:
        cost = sum(item.activity.estimated_cost for item in self.activities)
        cost += sum(meal.estimated_cost for meal in self.meals)
        if self.accommodation is not None:
            cost += self.accommodation.estimated_cost
        if self.transport is not None:
            cost += self.transport.estimated_cost
        return cost


class EmergencyInfo(CamelModel):
    important_numbers: List[str] = Field(
        default_factory=lambda: [
            "Police: 100",
            "Medical: 108",
            "Tourist Helpline: 1363",
            "Jharkhand Tourism: +91-651-2446781",
        ]
    )
    nearest_hospitals: List[str] = Field(
        default_factory=lambda: ["Contact district hospitals in major cities"]
    )
    embassy_contacts: str = "Contact respective embassies for international tourists"


class GeneratedItinerary(CamelModel):
    title: str
    description: str
    total_estimated_cost: int = Field(..., ge=0)
    budget_breakdown: BudgetBreakdown
    days: List[ItineraryDay]
    cultural_notes: List[str] = Field(default_factory=list)
    travel_tips: List[str] = Field(default_factory=list)
    local_experiences: List[str] = Field(default_factory=list)
    seasonal_considerations: List[str] = Field(default_factory=list)
    emergency_info: EmergencyInfo = Field(default_factory=EmergencyInfo)


class GenerationResult(CamelModel):
    """Outcome of one generation request, tagged with the path that produced it."""

    itinerary: Dict[str, Any]
    generation_method: GenerationMethod
    confidence: float
    processing_time_ms: int
    model: Optional[str] = None
    destinations_considered: int = 0

    @property
    def generated_by(self) -> Literal["ai", "basic"]:
        return "ai" if self.generation_method == "gemini-ai" else "basic"


# ------- HTTP request models -------
class BudgetRequest(CamelModel):
    total: int = Field(..., ge=MIN_BUDGET_TOTAL)
    budget_type: BudgetType = "mid-range"


class ItineraryRequest(CamelModel):
    duration: int = Field(..., ge=1, le=30)
    start_date: date
    group_size: int = Field(..., ge=1, le=50)
    group_type: GroupType
    budget: BudgetRequest
    interests: List[str] = Field(default_factory=list)
    preferences: TripPreferences = Field(default_factory=TripPreferences)
    exclude_destinations: List[str] = Field(default_factory=list)
    user_location: Optional[str] = None

    @field_validator("start_date")
    @classmethod
    def _start_date_window(cls, value: date) -> date:
        today = date.today()
        if value < today:
            raise ValueError("Start date cannot be in the past")
        if value > today + timedelta(days=730):
            raise ValueError("Start date cannot be more than 2 years in the future")
        return value

    def to_profile(self) -> TripProfile:
        return TripProfile(
            duration=self.duration,
            start_date=self.start_date,
            group_size=self.group_size,
            group_type=self.group_type,
            total_budget=self.budget.total,
            budget_type=self.budget.budget_type,
            interests=list(dict.fromkeys(self.interests)),
            exclude_destinations=self.exclude_destinations,
            preferences=self.preferences,
            user_location=self.user_location,
        )


class FeedbackRequest(CamelModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    review: Optional[str] = Field(None, min_length=1, max_length=1000)
    used_itinerary: Optional[bool] = None
    suggestions: Optional[str] = Field(None, max_length=500)


# Record-level fields an owner may not overwrite through an update.
PROTECTED_UPDATE_FIELDS = frozenset(
    {
        "id", "views", "feedback", "version",
        "userId", "user_id", "tripDetails", "trip_details", "aiGeneration", "ai_generation",
        "createdAt", "created_at", "updatedAt", "updated_at",
    }
)


class ItineraryUpdate(CamelModel):
    """Owner edit of a stored itinerary.

    ``status`` is a record field; every other key is itinerary content (title,
    days, travelTips, ...) and is merged into the stored itinerary as sent.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    status: Optional[ItineraryStatus] = None

    @model_validator(mode="after")
    def _days_not_emptied(self) -> "ItineraryUpdate":
        extra = self.model_extra or {}
        if "days" in extra and (not isinstance(extra["days"], list) or not extra["days"]):
            raise ValueError("days must be a non-empty list")
        return self

    @property
    def content(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in (self.model_extra or {}).items()
            if key not in PROTECTED_UPDATE_FIELDS
        }
