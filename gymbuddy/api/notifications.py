"""Notifications API."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gymbuddy.core.deps import get_current_user
from gymbuddy.core.errors import DomainError, to_http
from gymbuddy.db.session import get_db
from gymbuddy.models.profile import Profile
from gymbuddy.schemas.notification import NotificationResponse, UnreadCountResponse
from gymbuddy.services.notification_service import list_notifications, mark_all_read, mark_read, unread_count

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
def list_mine(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Current user's notifications, newest first."""
    return list_notifications(db, current_user.id, unread_only=unread_only, limit=limit)


@router.get("/unread-count", response_model=UnreadCountResponse)
def count_unread(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    return UnreadCountResponse(unread_count=unread_count(db, current_user.id))


@router.post("/read-all", response_model=UnreadCountResponse)
def read_all(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Mark everything read; returns the remaining unread count (0)."""
    mark_all_read(db, current_user.id)
    return UnreadCountResponse(unread_count=unread_count(db, current_user.id))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def read_one(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    try:
        return mark_read(db, notification_id, current_user.id)
    except DomainError as e:
        raise to_http(e)
