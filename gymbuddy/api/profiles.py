"""Profile and location API."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gymbuddy.core.deps import get_current_user
from gymbuddy.core.errors import DomainError, to_http
from gymbuddy.db.session import get_db
from gymbuddy.models.profile import Profile
from gymbuddy.schemas.profile import LocationResponse, LocationUpdate, ProfileResponse, ProfileUpdate
from gymbuddy.services.profile_service import get_profile, update_location, update_profile

router = APIRouter(tags=["profiles"])


@router.get("/profiles/me", response_model=ProfileResponse)
def get_me(current_user: Profile = Depends(get_current_user)):
    """Get the current user's profile."""
    return current_user


@router.put("/profiles/me", response_model=ProfileResponse)
def update_me(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Update the current user's profile."""
    try:
        return update_profile(db, current_user, data)
    except DomainError as e:
        raise to_http(e)


@router.get("/profiles/{user_id}", response_model=ProfileResponse)
def get_user_profile(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    try:
        return get_profile(db, user_id)
    except DomainError as e:
        raise to_http(e)


@router.post("/location", response_model=LocationResponse)
def post_location(
    data: LocationUpdate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """User reports a one-shot device location."""
    profile = update_location(db, current_user, data.latitude, data.longitude, data.country, data.city)
    return LocationResponse(
        latitude=profile.latitude,
        longitude=profile.longitude,
        country=profile.country,
        city=profile.city,
        location_updated_at=profile.location_updated_at,
    )
