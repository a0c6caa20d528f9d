"""Notification service."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from gymbuddy.core.change_feed import INSERT, UPDATE, ChangeEvent, change_feed
from gymbuddy.core.errors import NotAuthorized, NotificationNotFound
from gymbuddy.models.notification import Notification


def add_notification(db: Session, user_id: str, type_: str, data: dict[str, Any] | None = None) -> Notification:
    """Stage a notification in the caller's transaction. The caller commits and then calls announce()."""
    notification = Notification(user_id=user_id, type=type_, data=data or {}, read=False)
    db.add(notification)
    return notification


def announce(notification: Notification) -> None:
    """Publish the change event for a committed notification."""
    change_feed.publish(
        ChangeEvent(
            "notifications",
            INSERT,
            new={"id": notification.id, "user_id": notification.user_id, "type": notification.type},
        )
    )


def list_notifications(
    db: Session,
    user_id: str,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    """Newest first."""
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars().all())


def unread_count(db: Session, user_id: str) -> int:
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id,
        Notification.read.is_(False),
    )
    return db.execute(stmt).scalar_one()


def mark_read(db: Session, notification_id: int, user_id: str) -> Notification:
    """Recipient marks one notification read. Idempotent."""
    notification = db.get(Notification, notification_id)
    if not notification:
        raise NotificationNotFound()
    if notification.user_id != user_id:
        raise NotAuthorized("Only the recipient can mark this notification read")
    if not notification.read:
        notification.read = True
        db.commit()
        db.refresh(notification)
        change_feed.publish(
            ChangeEvent("notifications", UPDATE, new={"id": notification.id, "user_id": user_id, "read": True})
        )
    return notification


def mark_all_read(db: Session, user_id: str) -> int:
    """Mark every unread notification of user_id read. Returns how many changed."""
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    db.commit()
    changed = result.rowcount or 0
    if changed:
        change_feed.publish(ChangeEvent("notifications", UPDATE, new={"user_id": user_id, "read": True}))
    return changed
