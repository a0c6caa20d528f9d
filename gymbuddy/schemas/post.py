"""Post and pickup schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from gymbuddy.schemas.profile import ProfileSummary


class PostCreate(BaseModel):
    post_type: str = Field(default="post", pattern="^(post|short|buddy_request)$")
    content: str | None = Field(default=None, max_length=5000)
    image_url: str | None = Field(default=None, max_length=1024)
    video_url: str | None = Field(default=None, max_length=1024)
    tags: list[str] | None = None


class PostResponse(BaseModel):
    id: int
    user_id: str
    post_type: str
    content: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    tags: list[str] | None = None
    selected_buddy_id: str | None = None
    pickup_count: int
    created_at: datetime

    model_config = {"from_attributes": True}


class PickupResponse(BaseModel):
    id: int
    post_id: int
    user_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PickupWithUser(PickupResponse):
    profile: ProfileSummary


class SelectBuddyRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
