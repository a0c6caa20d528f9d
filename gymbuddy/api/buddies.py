"""Buddies API: nearby matching, requests and the buddy list."""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from gymbuddy.core.buddy_policies import NEARBY_DEFAULT_LIMIT, NEARBY_MAX_LIMIT
from gymbuddy.core.deps import get_current_user
from gymbuddy.core.errors import DomainError, to_http
from gymbuddy.db.session import get_db
from gymbuddy.models.profile import Profile
from gymbuddy.schemas.buddy import (
    BuddyRequestCreate,
    BuddyRespondRequest,
    BuddyResponse,
    BuddyWithUser,
    NearbyUserResponse,
)
from gymbuddy.schemas.profile import ProfileSummary
from gymbuddy.services.buddy_service import (
    RelationshipView,
    accepted_buddies_for,
    pending_requests_for,
    remove,
    respond,
    send_request,
    sent_requests_for,
)
from gymbuddy.services.geo_service import find_nearby
from gymbuddy.services.profile_service import get_profiles

router = APIRouter(prefix="/buddies", tags=["buddies"])


def _enrich(rows: list[RelationshipView], db: Session) -> list[BuddyWithUser]:
    """Attach the other party's profile to each relationship."""
    profiles = get_profiles(db, [r.other_id for r in rows])
    enriched = []
    for r in rows:
        other = profiles.get(r.other_id)
        enriched.append(
            BuddyWithUser(
                id=r.id,
                user_id=r.user_id,
                buddy_id=r.buddy_id,
                status=r.status,
                created_at=r.created_at,
                other=ProfileSummary.model_validate(other) if other else ProfileSummary(id=r.other_id),
            )
        )
    return enriched


@router.get("/nearby", response_model=list[NearbyUserResponse])
def nearby(
    latitude: float | None = Query(default=None, ge=-90, le=90),
    longitude: float | None = Query(default=None, ge=-180, le=180),
    limit: int = Query(default=NEARBY_DEFAULT_LIMIT, ge=1, le=NEARBY_MAX_LIMIT),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Users in the same country (same city flagged), closest first.

    Falls back to the stored location when no coordinates are given.
    """
    try:
        candidates = find_nearby(db, current_user.id, latitude, longitude, limit)
    except DomainError as e:
        raise to_http(e)
    return [
        NearbyUserResponse(
            nearby_user_id=c.user_id,
            full_name=c.full_name,
            username=c.username,
            avatar_url=c.avatar_url,
            bio=c.bio,
            country=c.country,
            city=c.city,
            distance_km=c.distance_km,
            same_city=c.same_city,
            relationship_status=c.relationship_status,
        )
        for c in candidates
    ]


@router.post("/requests", response_model=BuddyResponse)
def create_request(
    data: BuddyRequestCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Send a buddy request."""
    try:
        return send_request(db, current_user.id, data.buddy_id)
    except DomainError as e:
        raise to_http(e)


@router.get("/requests", response_model=list[BuddyWithUser])
def incoming_requests(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Pending requests addressed to the current user."""
    return _enrich(pending_requests_for(db, current_user.id), db)


@router.get("/requests/sent", response_model=list[BuddyWithUser])
def outgoing_requests(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Pending requests the current user has sent."""
    return _enrich(sent_requests_for(db, current_user.id), db)


@router.post("/{relationship_id}/respond", response_model=BuddyResponse)
def respond_to_request(
    relationship_id: int,
    data: BuddyRespondRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Recipient accepts or blocks a pending request."""
    try:
        return respond(db, relationship_id, current_user.id, data.decision)
    except DomainError as e:
        raise to_http(e)


@router.delete("/{relationship_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_relationship(
    relationship_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Cancel a sent request or remove a buddy."""
    try:
        remove(db, relationship_id, current_user.id)
    except DomainError as e:
        raise to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=list[BuddyWithUser])
def list_buddies(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Accepted buddies, whichever side of the request the current user was on."""
    return _enrich(accepted_buddies_for(db, current_user.id), db)
