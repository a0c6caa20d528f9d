"""Profile and location service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymbuddy.core.change_feed import INSERT, UPDATE, ChangeEvent, change_feed
from gymbuddy.core.errors import AlreadyExists, ProfileNotFound
from gymbuddy.models.profile import Profile
from gymbuddy.schemas.profile import ProfileUpdate

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: str) -> Profile:
    profile = db.get(Profile, user_id)
    if not profile:
        raise ProfileNotFound()
    return profile


def get_or_create_profile(db: Session, user_id: str) -> Profile:
    """Load the caller's profile, creating an empty one the first time an id is seen."""
    profile = db.get(Profile, user_id)
    if profile:
        return profile
    profile = Profile(id=user_id)
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        # Created concurrently by another request for the same user
        db.rollback()
        return get_profile(db, user_id)
    db.refresh(profile)
    logger.info("Profile created for user=%s", user_id)
    change_feed.publish(ChangeEvent("profiles", INSERT, new={"id": user_id}))
    return profile


def get_profiles(db: Session, user_ids: list[str]) -> dict[str, Profile]:
    """Bulk-load profiles keyed by id."""
    if not user_ids:
        return {}
    result = db.execute(select(Profile).where(Profile.id.in_(user_ids)))
    return {p.id: p for p in result.scalars().all()}


def update_profile(db: Session, profile: Profile, data: ProfileUpdate) -> Profile:
    """Apply the fields present in data. Username must stay unique."""
    changes = data.model_dump(exclude_unset=True)
    if "username" in changes and changes["username"] and changes["username"] != profile.username:
        taken = db.execute(
            select(Profile.id).where(Profile.username == changes["username"], Profile.id != profile.id)
        ).first()
        if taken:
            raise AlreadyExists("Username already taken")
    for name, value in changes.items():
        setattr(profile, name, value)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise AlreadyExists("Username already taken") from exc
    db.refresh(profile)
    change_feed.publish(ChangeEvent("profiles", UPDATE, new={"id": profile.id}))
    return profile


def update_location(
    db: Session,
    profile: Profile,
    latitude: float,
    longitude: float,
    country: str | None = None,
    city: str | None = None,
) -> Profile:
    """Overwrite the user's last known location."""
    profile.latitude = latitude
    profile.longitude = longitude
    profile.location_updated_at = datetime.now(timezone.utc)
    if country is not None:
        profile.country = country
    if city is not None:
        profile.city = city
    db.commit()
    db.refresh(profile)
    logger.debug("Location updated for user=%s", profile.id)
    change_feed.publish(ChangeEvent("profiles", UPDATE, new={"id": profile.id}))
    return profile
