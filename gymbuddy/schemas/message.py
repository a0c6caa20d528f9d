"""Chat schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=4000)


class MessageResponse(BaseModel):
    id: int
    sender_id: str
    receiver_id: str
    content: str
    read_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ChatUserResponse(BaseModel):
    id: str
    full_name: str
    username: str
    avatar_url: str | None = None
    last_message: str | None = None
    last_message_time: datetime | None = None
    unread_count: int = 0
