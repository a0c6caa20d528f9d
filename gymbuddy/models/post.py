"""Post model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from gymbuddy.db.base import Base


class Post(Base):
    """Feed post. Buddy-request posts collect pickups until selected_buddy_id is set."""

    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("pickup_count >= 0 AND pickup_count <= 5", name="ck_posts_pickup_capacity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    post_type: Mapped[str] = mapped_column(String(20), nullable=False, default="post")  # post | short | buddy_request
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    selected_buddy_id: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    # Denormalized count of buddy_request_pickups rows; the claim compare-and-set runs on it
    pickup_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    @property
    def is_decided(self) -> bool:
        return self.selected_buddy_id is not None
