"""Profile and location schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, max_length=255)
    username: str | None = Field(default=None, min_length=2, max_length=50, pattern=r"^[A-Za-z0-9_.]+$")
    bio: str | None = Field(default=None, max_length=1000)
    avatar_url: str | None = Field(default=None, max_length=1024)
    country: str | None = Field(default=None, max_length=100)
    city: str | None = Field(default=None, max_length=100)


class ProfileSummary(BaseModel):
    id: str
    full_name: str | None = None
    username: str | None = None
    avatar_url: str | None = None

    model_config = {"from_attributes": True}


class ProfileResponse(ProfileSummary):
    bio: str | None = None
    country: str | None = None
    city: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    location_updated_at: datetime | None = None
    created_at: datetime


class LocationUpdate(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    country: str | None = Field(default=None, max_length=100)
    city: str | None = Field(default=None, max_length=100)


class LocationResponse(BaseModel):
    latitude: float
    longitude: float
    country: str | None = None
    city: str | None = None
    location_updated_at: datetime
