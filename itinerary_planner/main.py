from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from itinerary_planner.catalog import NEARBY_RADIUS_KM, DestinationCatalog
from itinerary_planner.orchestrator import generate_itinerary
from itinerary_planner.schemas import (
    CandidateDestination,
    FeedbackRequest,
    ItineraryRequest,
    ItineraryUpdate,
)
from itinerary_planner.settings import Settings, get_logger
from itinerary_planner.store import ItineraryStore, StoredItinerary

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


def create_app(
    catalog: DestinationCatalog | None = None,
    store: ItineraryStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    application = FastAPI(title="Jharkhand Itinerary Planner API")
    application.state.catalog = catalog if catalog is not None else DestinationCatalog.seeded()
    application.state.store = store if store is not None else ItineraryStore()
    application.state.settings = settings

    # Operators can scope CORS via ITINERARY_PLANNER_ALLOWED_ORIGINS.
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    return application


# ---------- dependencies ----------
def get_catalog(request: Request) -> DestinationCatalog:
    return request.app.state.catalog


def get_store(request: Request) -> ItineraryStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def current_user(x_user_id: str = Header(..., alias="X-User-Id")) -> str:
    if not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing user id")
    return x_user_id.strip()


def admin_user(
    user_id: str = Depends(current_user),
    role: str = Header("user", alias="X-User-Role"),
) -> str:
    if role.strip().lower() != "admin":
        raise HTTPException(status_code=403, detail="Access denied. Insufficient permissions.")
    return user_id


def _owned(store: ItineraryStore, itinerary_id: str, user_id: str, action: str) -> StoredItinerary:
    record = store.get(itinerary_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    if record.user_id != user_id:
        raise HTTPException(
            status_code=403,
            detail=f"Access denied. You can only {action} your own itineraries.",
        )
    return record


def _pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    total_pages = (total + limit - 1) // limit if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "total": total,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
        "limit": limit,
    }


@router.get("/destinations")
async def list_destinations(
    category: Optional[str] = None,
    district: Optional[str] = None,
    tags: Optional[str] = None,
    featured: Optional[bool] = None,
    sort_by: str = Query("name", alias="sortBy", pattern="^(name|rating)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    catalog: DestinationCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    tag_list = [t.strip() for t in tags.split(",") if t.strip()] if tags else None
    items, total = catalog.search(
        category=category,
        district=district,
        tags=tag_list,
        featured=featured,
        sort_by=sort_by,
        page=page,
        limit=limit,
    )
    return {
        "destinations": [d.model_dump(mode="json", by_alias=True) for d in items],
        "pagination": _pagination(page, limit, total),
    }


@router.get("/destinations/nearby")
async def nearby_destinations(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: float = Query(NEARBY_RADIUS_KM, gt=0, le=1000),
    catalog: DestinationCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    """Published destinations within ``radius`` km of lat/lng, nearest first."""
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="Latitude and longitude are required")
    found = catalog.nearby(lat, lng, radius_km=radius)
    return {"destinations": [d.model_dump(mode="json", by_alias=True) for d in found]}


@router.post("/destinations", status_code=201)
async def create_destination(
    payload: Dict[str, Any] = Body(...),
    _: str = Depends(admin_user),
    catalog: DestinationCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    try:
        destination = CandidateDestination.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc
    try:
        catalog.create(destination)
    except KeyError as exc:
        raise HTTPException(
            status_code=409, detail=f"Destination {destination.id} already exists"
        ) from exc
    return {"destination": destination.model_dump(mode="json", by_alias=True)}


@router.get("/destinations/{destination_id}")
async def get_destination(
    destination_id: str,
    catalog: DestinationCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    dest = catalog.get(destination_id)
    if dest is None or dest.status != "published":
        raise HTTPException(status_code=404, detail="Destination not found")
    return {"destination": dest.model_dump(mode="json", by_alias=True)}


@router.post("/itineraries/generate", status_code=201)
async def api_generate(
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(current_user),
    catalog: DestinationCatalog = Depends(get_catalog),
    store: ItineraryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Validate the trip request, generate an itinerary and store it."""
    try:
        profile = ItineraryRequest.model_validate(payload).to_profile()
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc

    candidates = catalog.candidates_for(profile.interests, profile.exclude_destinations)
    if not candidates:
        raise HTTPException(
            status_code=400,
            detail="No suitable destinations found for your preferences",
        )

    result = await generate_itinerary(profile, candidates, settings=settings)
    record = store.save(user_id, profile, result)
    return {
        "itineraryId": record.id,
        **result.model_dump(mode="json", by_alias=True),
    }


@router.get("/itineraries")
async def list_itineraries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(current_user),
    store: ItineraryStore = Depends(get_store),
) -> Dict[str, Any]:
    items, total = store.list_for(user_id, page=page, limit=limit)
    summaries = [
        {
            "id": item.id,
            "title": item.itinerary.get("title"),
            "description": item.itinerary.get("description"),
            "tripDetails": item.trip_details.model_dump(mode="json", by_alias=True),
            "generatedBy": item.ai_generation.generated_by,
            "status": item.status,
            "views": item.views,
            "createdAt": item.created_at.isoformat(),
        }
        for item in items
    ]
    return {"itineraries": summaries, "pagination": _pagination(page, limit, total)}


@router.get("/itineraries/{itinerary_id}")
async def get_itinerary(
    itinerary_id: str,
    user_id: str = Depends(current_user),
    store: ItineraryStore = Depends(get_store),
) -> Dict[str, Any]:
    _owned(store, itinerary_id, user_id, "view")
    record = store.record_view(itinerary_id)
    return {"itinerary": record.model_dump(mode="json", by_alias=True)}


@router.put("/itineraries/{itinerary_id}")
async def update_itinerary(
    itinerary_id: str,
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(current_user),
    store: ItineraryStore = Depends(get_store),
) -> Dict[str, Any]:
    try:
        changes = ItineraryUpdate.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc
    _owned(store, itinerary_id, user_id, "update")
    record = store.update(itinerary_id, changes)
    return {
        "itinerary": record.model_dump(mode="json", by_alias=True),
        "changes": {
            "version": record.version,
            "status": record.status,
            "modifiedAt": record.updated_at.isoformat(),
        },
    }


@router.delete("/itineraries/{itinerary_id}")
async def delete_itinerary(
    itinerary_id: str,
    user_id: str = Depends(current_user),
    store: ItineraryStore = Depends(get_store),
) -> Dict[str, Any]:
    record = _owned(store, itinerary_id, user_id, "delete")
    store.delete(itinerary_id)
    return {
        "deletedItinerary": {
            "title": record.itinerary.get("title"),
            "duration": record.trip_details.duration,
            "generatedBy": record.ai_generation.generated_by,
        }
    }


@router.post("/itineraries/{itinerary_id}/feedback")
async def submit_feedback(
    itinerary_id: str,
    feedback: FeedbackRequest,
    user_id: str = Depends(current_user),
    store: ItineraryStore = Depends(get_store),
) -> Dict[str, Any]:
    _owned(store, itinerary_id, user_id, "provide feedback on")
    record = store.add_feedback(itinerary_id, feedback)
    return {"feedback": record.feedback.model_dump(mode="json", by_alias=True)}


app = create_app()
