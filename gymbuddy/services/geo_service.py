"""Geo and nearby-buddy matching service."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gymbuddy.core.buddy_policies import BLOCKED, NEARBY_DEFAULT_LIMIT
from gymbuddy.core.errors import LocationUnavailable, MatchServiceUnavailable, ProfileNotFound
from gymbuddy.models.profile import Profile
from gymbuddy.services.buddy_service import relationship_statuses

logger = logging.getLogger(__name__)


class Locale(Protocol):
    country: str | None
    city: str | None


@dataclass
class Candidate:
    """A user considered by the nearby matcher."""

    user_id: str
    country: str | None
    city: str | None
    distance_km: float
    full_name: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    same_city: bool = False
    relationship_status: str | None = None


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two lat/lng points in kilometers."""
    R = 6371.0  # Earth radius in km
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def same_city(requester: Locale, candidate: Locale) -> bool:
    return bool(
        requester.city
        and candidate.city
        and requester.country
        and candidate.country
        and candidate.city == requester.city
        and candidate.country == requester.country
    )


def matches_locale(requester: Locale, candidate: Locale) -> bool:
    """Loose locale match: same city and country, or just same country.

    Country alone is sufficient; the city clause is a refinement.
    """
    if same_city(requester, candidate):
        return True
    if requester.country and candidate.country and candidate.country == requester.country:
        return True
    return False


def rank_candidates(requester: Locale, candidates: Sequence[Candidate]) -> list[Candidate]:
    """Filter by locale and sort ascending by distance. The sort is stable."""
    ranked = []
    for c in candidates:
        if not matches_locale(requester, c):
            continue
        c.same_city = same_city(requester, c)
        ranked.append(c)
    ranked.sort(key=lambda c: c.distance_km)
    return ranked


def _load_candidates(
    db: Session,
    requester_id: str,
    latitude: float,
    longitude: float,
) -> list[Candidate]:
    """Every other located user with their distance from (latitude, longitude)."""
    result = db.execute(
        select(Profile)
        .where(Profile.id != requester_id)
        .where(Profile.latitude.is_not(None), Profile.longitude.is_not(None))
        .order_by(Profile.id)
    )
    return [
        Candidate(
            user_id=p.id,
            country=p.country,
            city=p.city,
            distance_km=haversine_km(latitude, longitude, p.latitude, p.longitude),
            full_name=p.full_name,
            username=p.username,
            avatar_url=p.avatar_url,
            bio=p.bio,
        )
        for p in result.scalars().all()
    ]


def find_nearby(
    db: Session,
    requester_id: str,
    latitude: float | None = None,
    longitude: float | None = None,
    limit: int = NEARBY_DEFAULT_LIMIT,
) -> list[Candidate]:
    """Nearby candidates for requester_id, closest first.

    Uses the given coordinates, falling back to the stored location. Users the
    requester has a blocked relationship with are left out. An empty list means
    no candidates; a store failure raises MatchServiceUnavailable.
    """
    try:
        requester = db.get(Profile, requester_id)
        if not requester:
            raise ProfileNotFound()

        if latitude is None or longitude is None:
            latitude, longitude = requester.latitude, requester.longitude
        if latitude is None or longitude is None:
            raise LocationUnavailable()

        candidates = _load_candidates(db, requester_id, latitude, longitude)
        statuses = relationship_statuses(db, requester_id)
    except SQLAlchemyError as exc:
        logger.error("Nearby lookup failed for user=%s: %s", requester_id, exc)
        raise MatchServiceUnavailable() from exc

    candidates = [c for c in candidates if statuses.get(c.user_id) != BLOCKED]
    for c in candidates:
        c.relationship_status = statuses.get(c.user_id)

    ranked = rank_candidates(requester, candidates)[:limit]
    for c in ranked:
        c.distance_km = round(c.distance_km, 2)
    logger.debug("Nearby for user=%s: %s of %s candidates", requester_id, len(ranked), len(candidates))
    return ranked
