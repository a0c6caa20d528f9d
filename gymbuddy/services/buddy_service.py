"""Buddy relationship service.

A relationship row moves NONE -> pending -> accepted | blocked. Only the
recipient (buddy_id) may respond. Every write publishes a ``buddies`` change
event. The request and buddy lists are always read from the table, so they
never disagree with it or with each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymbuddy.core.buddy_policies import (
    ACCEPTED,
    BLOCKED,
    DECISIONS,
    NOTIFY_BUDDY_ACCEPTED,
    NOTIFY_BUDDY_REQUEST,
    PENDING,
)
from gymbuddy.core.change_feed import DELETE, INSERT, UPDATE, ChangeEvent, change_feed
from gymbuddy.core.errors import (
    AlreadyExists,
    InvalidState,
    NotAuthorized,
    ProfileNotFound,
    RelationshipBlocked,
    RelationshipNotFound,
    SelfRequest,
)
from gymbuddy.models.buddy import Buddy, make_pair_key
from gymbuddy.models.profile import Profile
from gymbuddy.services import notification_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationshipView:
    """Detached snapshot of a relationship as seen by one user."""

    id: int
    user_id: str
    buddy_id: str
    status: str
    created_at: datetime
    other_id: str


def _view(link: Buddy, viewer_id: str) -> RelationshipView:
    return RelationshipView(
        id=link.id,
        user_id=link.user_id,
        buddy_id=link.buddy_id,
        status=link.status,
        created_at=link.created_at,
        other_id=link.other_party(viewer_id),
    )


def find_relationship(db: Session, a: str, b: str) -> Buddy | None:
    """The relationship between a and b in either direction, if any."""
    return db.execute(
        select(Buddy).where(Buddy.pair_key == make_pair_key(a, b))
    ).scalar_one_or_none()


def get_relationship(db: Session, relationship_id: int) -> Buddy:
    link = db.get(Buddy, relationship_id)
    if not link:
        raise RelationshipNotFound()
    return link


def _conflict_for(existing: Buddy) -> Exception:
    if existing.status == BLOCKED:
        return RelationshipBlocked()
    if existing.status == ACCEPTED:
        return AlreadyExists("Already buddies with this user")
    return AlreadyExists("Buddy request already pending")


def send_request(db: Session, requester_id: str, recipient_id: str) -> Buddy:
    """Create a pending request from requester to recipient."""
    if requester_id == recipient_id:
        raise SelfRequest()
    if not db.get(Profile, recipient_id):
        raise ProfileNotFound()

    existing = find_relationship(db, requester_id, recipient_id)
    if existing:
        raise _conflict_for(existing)

    link = Buddy(
        user_id=requester_id,
        buddy_id=recipient_id,
        status=PENDING,
        pair_key=make_pair_key(requester_id, recipient_id),
    )
    db.add(link)
    try:
        db.flush()
    except IntegrityError:
        # Lost a race with a request between the same pair
        db.rollback()
        existing = find_relationship(db, requester_id, recipient_id)
        if existing:
            raise _conflict_for(existing)
        raise AlreadyExists("Buddy request already exists")

    notification = notification_service.add_notification(
        db,
        recipient_id,
        NOTIFY_BUDDY_REQUEST,
        {"relationship_id": link.id, "from_user_id": requester_id},
    )
    db.commit()
    db.refresh(link)
    logger.info("Buddy request %s: %s -> %s", link.id, requester_id, recipient_id)

    change_feed.publish(ChangeEvent("buddies", INSERT, new=link.as_row()))
    notification_service.announce(notification)
    return link


def respond(db: Session, relationship_id: int, responder_id: str, decision: str) -> Buddy:
    """Recipient accepts or blocks a pending request."""
    if decision not in DECISIONS:
        raise ValueError(f"Unknown decision {decision!r}")
    new_status = DECISIONS[decision]

    link = get_relationship(db, relationship_id)
    if link.buddy_id != responder_id:
        raise NotAuthorized("Only the recipient can respond to this request")
    if link.status != PENDING:
        raise InvalidState(f"Cannot {decision} a request with status {link.status}")

    old_row = link.as_row()
    result = db.execute(
        update(Buddy)
        .where(Buddy.id == relationship_id, Buddy.status == PENDING)
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        db.refresh(link)
        raise InvalidState(f"Cannot {decision} a request with status {link.status}")

    notification = None
    if new_status == ACCEPTED:
        notification = notification_service.add_notification(
            db,
            link.user_id,
            NOTIFY_BUDDY_ACCEPTED,
            {"relationship_id": link.id, "by_user_id": responder_id},
        )
    db.commit()
    db.refresh(link)
    logger.info("Buddy request %s %s by %s", link.id, new_status, responder_id)

    change_feed.publish(ChangeEvent("buddies", UPDATE, new=link.as_row(), old=old_row))
    if notification is not None:
        notification_service.announce(notification)
    return link


def remove(db: Session, relationship_id: int, user_id: str) -> None:
    """Cancel a pending request (requester) or end an accepted relationship (either party).

    Blocked rows stay so the block keeps preventing new requests.
    """
    link = get_relationship(db, relationship_id)
    if not link.involves(user_id):
        raise NotAuthorized("Not part of this relationship")
    if link.status == BLOCKED:
        raise InvalidState("Blocked relationships cannot be removed")
    if link.status == PENDING and link.user_id != user_id:
        raise NotAuthorized("Only the requester can cancel a pending request; block it instead")

    old_row = link.as_row()
    db.delete(link)
    db.commit()
    logger.info("Relationship %s removed by %s", relationship_id, user_id)
    change_feed.publish(ChangeEvent("buddies", DELETE, old=old_row))


def pending_requests_for(db: Session, user_id: str) -> list[RelationshipView]:
    """Incoming pending requests (user is the recipient), newest first."""
    result = db.execute(
        select(Buddy)
        .where(Buddy.buddy_id == user_id)
        .where(Buddy.status == PENDING)
        .order_by(Buddy.created_at.desc(), Buddy.id.desc())
    )
    return [_view(link, user_id) for link in result.scalars().all()]


def accepted_buddies_for(db: Session, user_id: str) -> list[RelationshipView]:
    """Accepted relationships on either side of the row."""
    result = db.execute(
        select(Buddy)
        .where(or_(Buddy.user_id == user_id, Buddy.buddy_id == user_id))
        .where(Buddy.status == ACCEPTED)
        .order_by(Buddy.created_at.desc(), Buddy.id.desc())
    )
    return [_view(link, user_id) for link in result.scalars().all()]


def sent_requests_for(db: Session, user_id: str) -> list[RelationshipView]:
    """Outgoing requests still pending."""
    result = db.execute(
        select(Buddy)
        .where(Buddy.user_id == user_id)
        .where(Buddy.status == PENDING)
        .order_by(Buddy.created_at.desc(), Buddy.id.desc())
    )
    return [_view(link, user_id) for link in result.scalars().all()]


def accepted_buddy_ids(db: Session, user_id: str) -> list[str]:
    return [row.other_id for row in accepted_buddies_for(db, user_id)]


def are_buddies(db: Session, a: str, b: str) -> bool:
    link = find_relationship(db, a, b)
    return link is not None and link.status == ACCEPTED


def relationship_statuses(db: Session, user_id: str) -> dict[str, str]:
    """other user id -> status for every relationship involving user_id."""
    result = db.execute(
        select(Buddy).where(or_(Buddy.user_id == user_id, Buddy.buddy_id == user_id))
    )
    return {link.other_party(user_id): link.status for link in result.scalars().all()}
