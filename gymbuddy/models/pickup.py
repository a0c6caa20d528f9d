"""Buddy request pickup (claim) model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from gymbuddy.db.base import Base


class BuddyRequestPickup(Base):
    """One user's claim on a buddy-request post. Never mutated."""

    __tablename__ = "buddy_request_pickups"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_pickup_post_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
