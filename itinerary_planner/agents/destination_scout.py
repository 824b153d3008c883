"""Destination scoring and selection for the rule-based planner."""
from __future__ import annotations

from typing import Iterable, List, Sequence

from itinerary_planner.schemas import CandidateDestination, ScoredDestination
from itinerary_planner.settings import get_logger

logger = get_logger(__name__)

DEFAULT_RATING = 3.0
TAG_MATCH_BONUS = 0.5
FEATURED_BONUS = 1.0
CULTURAL_BONUS = 0.5


def score_destination(destination: CandidateDestination, interests: Iterable[str]) -> float:
    """Rank a destination against the traveller's interest tags.

    Starts from the average rating (3 when unrated), then adds a bonus for each
    distinct tag shared with ``interests``, for featured destinations, and for
    destinations carrying cultural significance notes.
    """
    wanted = set(interests or [])
    score = destination.rating if destination.rating is not None else DEFAULT_RATING

    matching = [tag for tag in dict.fromkeys(destination.tags) if tag in wanted]
    score += len(matching) * TAG_MATCH_BONUS

    if destination.featured:
        score += FEATURED_BONUS
    if destination.cultural_significance and destination.cultural_significance.strip():
        score += CULTURAL_BONUS

    return score


def rank_destinations(
    candidates: Sequence[CandidateDestination],
    interests: Iterable[str],
) -> List[ScoredDestination]:
    interests = list(interests or [])
    scored = [
        ScoredDestination(destination=dest, score=score_destination(dest, interests))
        for dest in candidates
    ]
    # sorted() is stable with reverse=True, so ties keep their input order
    return sorted(scored, key=lambda item: item.score, reverse=True)


def target_count(duration: int, available: int) -> int:
    # floor(min(duration * 1.5, available)) without float rounding
    return min((duration * 3) // 2, available)


def select_destinations(
    candidates: Sequence[CandidateDestination],
    duration: int,
    interests: Iterable[str],
) -> List[CandidateDestination]:
    """Return the best ``floor(min(duration * 1.5, len(candidates)))`` destinations."""
    if not candidates:
        logger.warning("No candidate destinations supplied; schedule will contain leisure days only")
        return []

    ranked = rank_destinations(candidates, interests)
    count = target_count(duration, len(ranked))
    selected = [item.destination for item in ranked[:count]]
    logger.info(
        "Selected %d of %d destinations for a %d-day trip: %s",
        len(selected),
        len(candidates),
        duration,
        ", ".join(f"{item.destination.name} ({item.score:.1f})" for item in ranked[:count]),
    )
    return selected
