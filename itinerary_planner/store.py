"""In-memory itinerary persistence used in place of a database collection."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import Field

from itinerary_planner.schemas import (
    CamelModel,
    FeedbackRequest,
    GenerationResult,
    ItineraryStatus,
    ItineraryUpdate,
    TripProfile,
)
from itinerary_planner.settings import get_logger

logger = get_logger(__name__)


class GenerationMetadata(CamelModel):
    generated_by: Literal["ai", "basic"]
    ai_provider: str = "gemini"
    ai_model: Optional[str] = None
    generation_time: int = 0
    confidence: float


class Feedback(CamelModel):
    rating: Optional[int] = None
    review: Optional[str] = None
    used_itinerary: Optional[bool] = None
    suggestions: Optional[str] = None
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class StoredItinerary(CamelModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    trip_details: TripProfile
    itinerary: Dict[str, Any]
    ai_generation: GenerationMetadata
    status: ItineraryStatus = "generated"
    version: int = 1
    views: int = 0
    feedback: Optional[Feedback] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None


class ItineraryStore:
    """Keyed itinerary store; one instance per application, injected into handlers."""

    def __init__(self) -> None:
        self._items: Dict[str, StoredItinerary] = {}

    def __len__(self) -> int:
        return len(self._items)

    def save(self, user_id: str, profile: TripProfile, result: GenerationResult) -> StoredItinerary:
        record = StoredItinerary(
            user_id=user_id,
            trip_details=profile,
            itinerary=result.itinerary,
            ai_generation=GenerationMetadata(
                generated_by=result.generated_by,
                ai_model=result.model,
                generation_time=result.processing_time_ms,
                confidence=result.confidence,
            ),
        )
        self._items[record.id] = record
        logger.info("Stored itinerary %s for user %s (%s)", record.id, user_id, result.generation_method)
        return record

    def get(self, itinerary_id: str) -> Optional[StoredItinerary]:
        return self._items.get(itinerary_id)

    def list_for(self, user_id: str, page: int = 1, limit: int = 10) -> Tuple[List[StoredItinerary], int]:
        owned = [item for item in self._items.values() if item.user_id == user_id]
        owned.sort(key=lambda item: item.created_at, reverse=True)
        start = (max(1, page) - 1) * limit
        return owned[start:start + limit], len(owned)

    def record_view(self, itinerary_id: str) -> Optional[StoredItinerary]:
        record = self._items.get(itinerary_id)
        if record is not None:
            record.views += 1
        return record

    def delete(self, itinerary_id: str) -> bool:
        return self._items.pop(itinerary_id, None) is not None

    def add_feedback(self, itinerary_id: str, feedback: FeedbackRequest) -> Optional[StoredItinerary]:
        record = self._items.get(itinerary_id)
        if record is None:
            return None
        record.feedback = Feedback(**feedback.model_dump())
        return record

    def update(self, itinerary_id: str, changes: ItineraryUpdate) -> Optional[StoredItinerary]:
        """Merge owner edits into the record and bump its version.

        Editing the days of a model-generated itinerary marks it ``customized``.
        """
        record = self._items.get(itinerary_id)
        if record is None:
            return None
        content = changes.content
        record.itinerary = {**record.itinerary, **content}
        if changes.status is not None:
            record.status = changes.status
        if record.ai_generation.generated_by == "ai" and "days" in content:
            record.status = "customized"
        record.version += 1
        record.updated_at = datetime.now(timezone.utc)
        logger.info(
            "Updated itinerary %s to version %d (%s): %s",
            record.id,
            record.version,
            record.status,
            ", ".join(sorted(content)) or "no content changes",
        )
        return record
