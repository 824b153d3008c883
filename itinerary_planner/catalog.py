"""In-memory destination catalogue used as the destination lookup collaborator."""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from itinerary_planner.schemas import CandidateDestination
from itinerary_planner.settings import get_logger

logger = get_logger(__name__)

MAX_CANDIDATES = 20
NEARBY_RADIUS_KM = 50.0
EARTH_RADIUS_KM = 6371.0

SEED_DESTINATIONS: List[Dict[str, object]] = [
    {
        "id": "hundru-falls",
        "name": "Hundru Falls",
        "district": "ranchi",
        "category": "waterfall",
        "tags": ["nature", "photography", "adventure", "trekking"],
        "rating": 4.5,
        "featured": True,
        "culturalSignificance": "Sacred to local Munda tribes",
        "entryFee": 20,
        "facilities": ["parking", "restroom", "food-stall", "drinking-water"],
        "coordinates": [85.3094, 23.4225],
        "description": (
            "A 98-metre waterfall formed by the Subarnarekha River about 45 km from Ranchi, "
            "at its most dramatic just after the monsoon."
        ),
        "shortDescription": "Spectacular 98-meter high waterfall near Ranchi",
        "bestTimeToVisit": ["winter", "post-monsoon"],
    },
    {
        "id": "netarhat",
        "name": "Netarhat",
        "district": "latehar",
        "category": "hill-station",
        "tags": ["nature", "culture", "photography", "trekking"],
        "rating": 4.2,
        "featured": True,
        "culturalSignificance": "Historical significance for Ho and Munda tribes",
        "entryFee": 0,
        "facilities": ["accommodation", "restaurant", "parking", "wifi"],
        "coordinates": [84.2619, 23.4675],
        "description": (
            "The Queen of Chotanagpur: a forested plateau hill station known for its "
            "sunrise and sunset points and easy trekking trails."
        ),
        "shortDescription": "Queen of Chotanagpur - Hill Station with stunning sunrise views",
        "bestTimeToVisit": ["winter", "summer"],
    },
    {
        "id": "betla-national-park",
        "name": "Betla National Park",
        "district": "palamu",
        "category": "wildlife",
        "tags": ["wildlife", "nature", "camping", "photography"],
        "rating": 4.0,
        "featured": False,
        "culturalSignificance": "Traditional hunting grounds of local tribes",
        "entryFee": 80,
        "facilities": ["accommodation", "guide-service", "first-aid", "souvenir-shop"],
        "coordinates": [84.1947, 23.8833],
        "description": (
            "One of India's earliest national parks, part of the Palamu tiger reserve, "
            "with jeep safaris, elephants and a large bird population."
        ),
        "shortDescription": "Premier tiger reserve and wildlife sanctuary",
        "bestTimeToVisit": ["winter", "summer"],
    },
    {
        "id": "deoghar-temple",
        "name": "Deoghar Temple",
        "district": "deoghar",
        "category": "pilgrimage",
        "tags": ["religious", "culture", "historical", "festival"],
        "rating": 4.8,
        "featured": True,
        "culturalSignificance": "Revered by all communities",
        "entryFee": 0,
        "facilities": ["accommodation", "restaurant", "parking", "drinking-water", "wheelchair-access"],
        "coordinates": [86.6908, 24.4854],
        "description": (
            "The Baidyanath Jyotirlinga temple complex, one of the most visited "
            "pilgrimage sites in eastern India, busiest during Shravani Mela."
        ),
        "shortDescription": "Sacred Jyotirlinga temple - major pilgrimage destination",
        "bestTimeToVisit": ["winter", "monsoon"],
    },
    {
        "id": "jonha-falls",
        "name": "Jonha Falls",
        "district": "ranchi",
        "category": "waterfall",
        "tags": ["nature", "photography", "adventure"],
        "rating": 4.3,
        "featured": False,
        "culturalSignificance": "Associated with Gautam Buddha's meditation",
        "entryFee": 15,
        "facilities": ["parking", "food-stall", "drinking-water"],
        "coordinates": [85.4358, 23.2858],
        "description": (
            "Also called Gautamdhara, a 43-metre fall reached by several hundred steps "
            "down a wooded gorge east of Ranchi."
        ),
        "shortDescription": "Scenic 43-meter waterfall also known as Gautamdhara",
        "bestTimeToVisit": ["post-monsoon", "winter"],
    },
]


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    a = (math.sin(math.radians((lat2 - lat1) / 2)) ** 2
         + math.cos(p1) * math.cos(p2)
         * math.sin(math.radians((lng2 - lng1) / 2)) ** 2)
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


class DestinationCatalog:
    """Keyed destination store; handlers receive it through dependency injection."""

    def __init__(self, destinations: Iterable[CandidateDestination] = ()):
        self._items: Dict[str, CandidateDestination] = {}
        for dest in destinations:
            self.add(dest)

    @classmethod
    def seeded(cls) -> "DestinationCatalog":
        return cls(CandidateDestination.model_validate(raw) for raw in SEED_DESTINATIONS)

    def __len__(self) -> int:
        return len(self._items)

    def add(self, destination: CandidateDestination) -> None:
        self._items[destination.id] = destination

    def get(self, destination_id: str) -> Optional[CandidateDestination]:
        return self._items.get(destination_id)

    def create(self, destination: CandidateDestination) -> CandidateDestination:
        if destination.id in self._items:
            raise KeyError(destination.id)
        self.add(destination)
        logger.info("Destination %s added to catalogue (%s)", destination.id, destination.status)
        return destination

    def nearby(
        self,
        lat: float,
        lng: float,
        radius_km: float = NEARBY_RADIUS_KM,
        limit: int = MAX_CANDIDATES,
    ) -> List[CandidateDestination]:
        """Published destinations within ``radius_km`` of a point, nearest first."""
        in_range = []
        for dest in self.published():
            dest_lng, dest_lat = dest.coordinates[0], dest.coordinates[1]
            distance = haversine_km(lat, lng, dest_lat, dest_lng)
            if distance <= radius_km:
                in_range.append((distance, dest))
        in_range.sort(key=lambda pair: pair[0])
        return [dest for _, dest in in_range[:limit]]

    def published(self) -> List[CandidateDestination]:
        return [dest for dest in self._items.values() if dest.status == "published"]

    def candidates_for(
        self,
        interests: Sequence[str],
        exclude_ids: Sequence[str] = (),
        limit: int = MAX_CANDIDATES,
    ) -> List[CandidateDestination]:
        """Published destinations matching any interest, best rated first."""
        excluded = set(exclude_ids or [])
        wanted = set(interests or [])
        pool = [
            dest
            for dest in self.published()
            if dest.id not in excluded and (not wanted or wanted.intersection(dest.tags))
        ]
        pool.sort(key=lambda d: (d.rating or 0.0, d.featured), reverse=True)
        logger.info(
            "Destination lookup: %d match(es) for interests [%s] excluding %d id(s)",
            len(pool),
            ", ".join(interests or []),
            len(excluded),
        )
        return pool[:limit]

    def search(
        self,
        *,
        category: str | None = None,
        district: str | None = None,
        tags: Sequence[str] | None = None,
        featured: bool | None = None,
        sort_by: str = "name",
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[CandidateDestination], int]:
        results = self.published()
        if category:
            results = [d for d in results if d.category == category]
        if district:
            results = [d for d in results if d.district == district]
        if tags:
            wanted = set(tags)
            results = [d for d in results if wanted.intersection(d.tags)]
        if featured is not None:
            results = [d for d in results if d.featured == featured]

        if sort_by == "rating":
            results.sort(key=lambda d: d.name)
            results.sort(key=lambda d: d.rating or 0.0, reverse=True)
        else:
            results.sort(key=lambda d: d.name)

        total = len(results)
        start = (max(1, page) - 1) * limit
        return results[start:start + limit], total
