"""Buddy relationship and nearby-matching schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from gymbuddy.schemas.profile import ProfileSummary


class BuddyRequestCreate(BaseModel):
    buddy_id: str = Field(min_length=1, max_length=64)


class BuddyRespondRequest(BaseModel):
    decision: str = Field(..., pattern="^(accept|block)$")


class BuddyResponse(BaseModel):
    id: int
    user_id: str
    buddy_id: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class BuddyWithUser(BuddyResponse):
    """Relationship with the other party's profile, whichever column they occupy."""

    other: ProfileSummary


class NearbyUserResponse(BaseModel):
    nearby_user_id: str
    full_name: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    country: str | None = None
    city: str | None = None
    distance_km: float
    same_city: bool
    relationship_status: str | None = None  # pending | accepted | None
