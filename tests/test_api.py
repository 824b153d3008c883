from datetime import date, timedelta
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from itinerary_planner.main import create_app
from itinerary_planner.schemas import GenerationResult
from itinerary_planner.settings import Settings

USER = {"X-User-Id": "user-1"}
OTHER_USER = {"X-User-Id": "user-2"}


def _client() -> TestClient:
    return TestClient(create_app(settings=Settings(api_key=None)))


def _sample_payload(**overrides) -> dict:
    payload = {
        "duration": 3,
        "startDate": (date.today() + timedelta(days=14)).isoformat(),
        "groupSize": 4,
        "groupType": "family",
        "budget": {"total": 15000, "budgetType": "mid-range"},
        "interests": ["nature", "culture"],
    }
    payload.update(overrides)
    return payload


def test_generate_endpoint_falls_back_and_stores_itinerary():
    client = _client()

    response = client.post("/api/itineraries/generate", json=_sample_payload(), headers=USER)

    assert response.status_code == 201
    body = response.json()
    assert body["generationMethod"] == "basic-algorithm"
    assert body["confidence"] == 0.6
    assert len(body["itinerary"]["days"]) == 3
    assert sum(body["itinerary"]["budgetBreakdown"].values()) == 15000

    stored = client.get(f"/api/itineraries/{body['itineraryId']}", headers=USER)
    assert stored.status_code == 200
    record = stored.json()["itinerary"]
    assert record["aiGeneration"]["generatedBy"] == "basic"
    assert record["views"] == 1
    assert record["tripDetails"]["totalBudget"] == 15000


def test_generate_endpoint_delegates_to_orchestrator(monkeypatch):
    client = _client()
    orchestrator = AsyncMock(
        return_value=GenerationResult(
            itinerary={"title": "Mocked", "days": [{}]},
            generation_method="gemini-ai",
            confidence=0.9,
            processing_time_ms=12,
            model="gemini-1.5-flash",
        )
    )
    monkeypatch.setattr("itinerary_planner.main.generate_itinerary", orchestrator)

    response = client.post(
        "/api/itineraries/generate",
        json=_sample_payload(interests=["nature", "nature"], excludeDestinations=["netarhat"]),
        headers=USER,
    )

    assert response.status_code == 201
    orchestrator.assert_awaited_once()
    profile, candidates = orchestrator.await_args.args
    assert profile.interests == ["nature"]
    assert "netarhat" not in {c.id for c in candidates}
    assert response.json()["generationMethod"] == "gemini-ai"


def test_generate_endpoint_rejects_invalid_requests():
    client = _client()

    too_long = client.post("/api/itineraries/generate", json=_sample_payload(duration=31), headers=USER)
    past = client.post(
        "/api/itineraries/generate",
        json=_sample_payload(startDate=(date.today() - timedelta(days=1)).isoformat()),
        headers=USER,
    )
    cheap = client.post(
        "/api/itineraries/generate",
        json=_sample_payload(duration=10, budget={"total": 2000, "budgetType": "budget"}),
        headers=USER,
    )
    bad_group = client.post(
        "/api/itineraries/generate", json=_sample_payload(groupType="crowd"), headers=USER
    )

    assert too_long.status_code == 422
    assert past.status_code == 422
    assert cheap.status_code == 422
    assert bad_group.status_code == 422


def test_generate_endpoint_requires_matching_destinations():
    client = _client()
    response = client.post(
        "/api/itineraries/generate", json=_sample_payload(interests=["meditation"]), headers=USER
    )
    assert response.status_code == 400


def test_itineraries_are_scoped_to_their_owner():
    client = _client()
    created = client.post("/api/itineraries/generate", json=_sample_payload(), headers=USER).json()
    itinerary_id = created["itineraryId"]

    assert client.get(f"/api/itineraries/{itinerary_id}", headers=OTHER_USER).status_code == 403
    assert client.delete(f"/api/itineraries/{itinerary_id}", headers=OTHER_USER).status_code == 403
    assert client.get("/api/itineraries", headers=OTHER_USER).json()["itineraries"] == []

    listing = client.get("/api/itineraries", headers=USER).json()
    assert [item["id"] for item in listing["itineraries"]] == [itinerary_id]
    assert listing["pagination"]["total"] == 1


def test_feedback_and_delete_flow():
    client = _client()
    itinerary_id = client.post(
        "/api/itineraries/generate", json=_sample_payload(), headers=USER
    ).json()["itineraryId"]

    feedback = client.post(
        f"/api/itineraries/{itinerary_id}/feedback",
        json={"rating": 5, "review": "Loved the waterfalls", "usedItinerary": True},
        headers=USER,
    )
    assert feedback.status_code == 200
    assert feedback.json()["feedback"]["rating"] == 5

    invalid = client.post(
        f"/api/itineraries/{itinerary_id}/feedback", json={"rating": 9}, headers=USER
    )
    assert invalid.status_code == 422

    deleted = client.delete(f"/api/itineraries/{itinerary_id}", headers=USER)
    assert deleted.status_code == 200
    assert deleted.json()["deletedItinerary"]["duration"] == 3
    assert client.get(f"/api/itineraries/{itinerary_id}", headers=USER).status_code == 404


def test_destination_listing_filters_and_sorts():
    client = _client()

    ranchi = client.get("/api/destinations", params={"district": "ranchi"}).json()
    assert {d["id"] for d in ranchi["destinations"]} == {"hundru-falls", "jonha-falls"}

    by_rating = client.get("/api/destinations", params={"sortBy": "rating"}).json()
    assert by_rating["destinations"][0]["name"] == "Deoghar Temple"

    featured = client.get("/api/destinations", params={"featured": "true", "tags": "nature"}).json()
    assert {d["id"] for d in featured["destinations"]} == {"hundru-falls", "netarhat"}

    paged = client.get("/api/destinations", params={"limit": 2, "page": 3}).json()
    assert len(paged["destinations"]) == 1
    assert paged["pagination"]["totalPages"] == 3


def test_destination_detail():
    client = _client()
    found = client.get("/api/destinations/netarhat")
    assert found.status_code == 200
    assert found.json()["destination"]["entryFee"] == 0
    assert client.get("/api/destinations/unknown").status_code == 404


def test_requests_without_user_header_are_rejected():
    client = _client()
    response = client.post("/api/itineraries/generate", json=_sample_payload())
    assert response.status_code == 422


def test_owner_can_update_itinerary():
    client = _client()
    itinerary_id = client.post(
        "/api/itineraries/generate", json=_sample_payload(), headers=USER
    ).json()["itineraryId"]

    response = client.put(
        f"/api/itineraries/{itinerary_id}",
        json={"title": "Family falls weekend", "status": "finalized", "aiGeneration": {"generatedBy": "ai"}},
        headers=USER,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["changes"]["version"] == 2
    assert body["changes"]["status"] == "finalized"
    assert body["itinerary"]["itinerary"]["title"] == "Family falls weekend"
    assert body["itinerary"]["aiGeneration"]["generatedBy"] == "basic"
    assert len(body["itinerary"]["itinerary"]["days"]) == 3


def test_update_is_owner_checked_and_validated():
    client = _client()
    itinerary_id = client.post(
        "/api/itineraries/generate", json=_sample_payload(), headers=USER
    ).json()["itineraryId"]
    url = f"/api/itineraries/{itinerary_id}"

    assert client.put(url, json={"title": "Mine now"}, headers=OTHER_USER).status_code == 403
    assert client.put(url, json={"status": "shipped"}, headers=USER).status_code == 422
    assert client.put(url, json={"days": []}, headers=USER).status_code == 422
    assert client.put("/api/itineraries/missing", json={"title": "x"}, headers=USER).status_code == 404
    assert client.get(url, headers=USER).json()["itinerary"]["version"] == 1


def test_nearby_destinations():
    client = _client()

    missing = client.get("/api/destinations/nearby", params={"lat": 23.34})
    assert missing.status_code == 400

    near = client.get("/api/destinations/nearby", params={"lat": 23.3441, "lng": 85.3096, "radius": 25})
    assert near.status_code == 200
    assert [d["id"] for d in near.json()["destinations"]] == ["hundru-falls", "jonha-falls"]


def test_only_admins_create_destinations():
    client = _client()
    dassam = {
        "id": "dassam-falls",
        "name": "Dassam Falls",
        "district": "ranchi",
        "category": "waterfall",
        "tags": ["nature"],
        "entryFee": 10,
        "coordinates": [85.4597, 23.1431],
    }
    admin = {**USER, "X-User-Role": "admin"}

    assert client.post("/api/destinations", json=dassam, headers=USER).status_code == 403
    assert client.post("/api/destinations", json={"id": "no-name"}, headers=admin).status_code == 422

    created = client.post("/api/destinations", json=dassam, headers=admin)
    assert created.status_code == 201
    assert created.json()["destination"]["entryFee"] == 10
    assert client.post("/api/destinations", json=dassam, headers=admin).status_code == 409
    assert client.get("/api/destinations/dassam-falls").status_code == 200
