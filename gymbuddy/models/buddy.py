"""Buddy relationship model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from gymbuddy.db.base import Base


def make_pair_key(a: str, b: str) -> str:
    """Canonical key for the unordered pair {a, b}."""
    lo, hi = sorted((a, b))
    return f"{lo}|{hi}"


class Buddy(Base):
    """Directed buddy proposal from user_id (requester) to buddy_id (recipient).

    Once accepted it counts as a buddy for both sides. pair_key is unique, so
    at most one row exists per pair regardless of direction.
    """

    __tablename__ = "buddies"
    __table_args__ = (
        UniqueConstraint("pair_key", name="uq_buddies_pair_key"),
        CheckConstraint("status IN ('pending', 'accepted', 'blocked')", name="ck_buddies_status"),
        CheckConstraint("user_id <> buddy_id", name="ck_buddies_not_self"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    buddy_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending | accepted | blocked
    pair_key: Mapped[str] = mapped_column(String(140), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def other_party(self, viewer_id: str) -> str:
        """Return the id of the user on the other side of the row from viewer_id."""
        if self.user_id == viewer_id:
            return self.buddy_id
        if self.buddy_id == viewer_id:
            return self.user_id
        raise ValueError(f"User {viewer_id} is not part of relationship {self.id}")

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user_id, self.buddy_id)

    def as_row(self) -> dict:
        """Plain row snapshot used for change events."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "buddy_id": self.buddy_id,
            "status": self.status,
        }
