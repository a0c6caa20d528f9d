"""Buddy-request posts and the pickup (claim) arbiter.

A buddy-request post accepts up to MAX_PICKUPS_PER_POST pickups until its
owner selects one claimant. Capacity and the decided flag are enforced by
conditional UPDATEs on the post row, so two concurrent pickups racing for the
last slot cannot both succeed.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymbuddy.core.buddy_policies import (
    MAX_PICKUPS_PER_POST,
    NOTIFY_PICKUP,
    NOTIFY_SELECTED,
    POST_TYPE_BUDDY_REQUEST,
    POST_TYPES,
)
from gymbuddy.core.change_feed import INSERT, UPDATE, ChangeEvent, change_feed
from gymbuddy.core.errors import (
    AlreadyClaimed,
    AlreadyDecided,
    CapacityExceeded,
    MissingContent,
    NotABuddyRequest,
    NotAClaimant,
    NotOwner,
    PostDecided,
    PostNotFound,
    SelfClaim,
)
from gymbuddy.models.pickup import BuddyRequestPickup
from gymbuddy.models.post import Post
from gymbuddy.services import notification_service

logger = logging.getLogger(__name__)


def _post_row(post: Post) -> dict:
    return {
        "id": post.id,
        "user_id": post.user_id,
        "post_type": post.post_type,
        "selected_buddy_id": post.selected_buddy_id,
    }


def create_post(
    db: Session,
    owner_id: str,
    post_type: str,
    content: str | None = None,
    image_url: str | None = None,
    video_url: str | None = None,
    tags: list[str] | None = None,
) -> Post:
    """Create a post. Needs text or media."""
    if post_type not in POST_TYPES:
        raise ValueError(f"Unknown post type {post_type!r}")
    content = content.strip() if content else None
    if not content and not image_url and not video_url:
        raise MissingContent("A post needs content, an image or a video")

    post = Post(
        user_id=owner_id,
        post_type=post_type,
        content=content,
        image_url=image_url,
        video_url=video_url,
        tags=tags or [],
        pickup_count=0,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    change_feed.publish(ChangeEvent("posts", INSERT, new=_post_row(post)))
    return post


def get_post(db: Session, post_id: int) -> Post:
    post = db.get(Post, post_id)
    if not post:
        raise PostNotFound()
    return post


def _has_claim(db: Session, post_id: int, user_id: str) -> bool:
    return (
        db.execute(
            select(BuddyRequestPickup.id).where(
                BuddyRequestPickup.post_id == post_id,
                BuddyRequestPickup.user_id == user_id,
            )
        ).first()
        is not None
    )


def claim(db: Session, post_id: int, user_id: str) -> BuddyRequestPickup:
    """Pick up a buddy request. Exactly one pickup row per success."""
    post = get_post(db, post_id)
    if post.post_type != POST_TYPE_BUDDY_REQUEST:
        raise NotABuddyRequest()
    if post.user_id == user_id:
        raise SelfClaim()
    if post.is_decided:
        raise PostDecided()
    if _has_claim(db, post_id, user_id):
        raise AlreadyClaimed()

    # Reserve a slot: succeeds only while the post is open and below capacity
    reserved = db.execute(
        update(Post)
        .where(
            Post.id == post_id,
            Post.pickup_count < MAX_PICKUPS_PER_POST,
            Post.selected_buddy_id.is_(None),
        )
        .values(pickup_count=Post.pickup_count + 1)
        .execution_options(synchronize_session=False)
    )
    if reserved.rowcount != 1:
        db.rollback()
        db.refresh(post)
        if post.is_decided:
            raise PostDecided()
        logger.info("Pickup rejected for post=%s user=%s: capacity reached", post_id, user_id)
        raise CapacityExceeded()

    pickup = BuddyRequestPickup(post_id=post_id, user_id=user_id)
    db.add(pickup)
    try:
        db.flush()
    except IntegrityError:
        # Same user raced themselves; the rollback releases the reserved slot
        db.rollback()
        raise AlreadyClaimed()

    notification = notification_service.add_notification(
        db,
        post.user_id,
        NOTIFY_PICKUP,
        {"post_id": post_id, "user_id": user_id},
    )
    db.commit()
    db.refresh(pickup)
    logger.info("Pickup %s: user=%s claimed post=%s", pickup.id, user_id, post_id)

    change_feed.publish(
        ChangeEvent(
            "buddy_request_pickups",
            INSERT,
            new={"id": pickup.id, "post_id": post_id, "user_id": user_id},
        )
    )
    notification_service.announce(notification)
    return pickup


def select_buddy(db: Session, post_id: int, owner_id: str, chosen_user_id: str) -> Post:
    """Owner picks one claimant. Terminal; re-selecting the same user is a no-op."""
    post = get_post(db, post_id)
    if post.user_id != owner_id:
        raise NotOwner()
    if not _has_claim(db, post_id, chosen_user_id):
        raise NotAClaimant()
    if post.selected_buddy_id == chosen_user_id:
        return post

    old_row = _post_row(post)
    result = db.execute(
        update(Post)
        .where(Post.id == post_id, Post.selected_buddy_id.is_(None))
        .values(selected_buddy_id=chosen_user_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        db.refresh(post)
        if post.selected_buddy_id == chosen_user_id:
            return post
        raise AlreadyDecided()

    notification = notification_service.add_notification(
        db,
        chosen_user_id,
        NOTIFY_SELECTED,
        {"post_id": post_id, "owner_id": owner_id},
    )
    db.commit()
    db.refresh(post)
    logger.info("Post %s decided: owner=%s selected=%s", post_id, owner_id, chosen_user_id)

    change_feed.publish(ChangeEvent("posts", UPDATE, new=_post_row(post), old=old_row))
    notification_service.announce(notification)
    return post


def list_pickups(db: Session, post_id: int) -> list[BuddyRequestPickup]:
    """Pickups on a post, oldest first."""
    get_post(db, post_id)
    result = db.execute(
        select(BuddyRequestPickup)
        .where(BuddyRequestPickup.post_id == post_id)
        .order_by(BuddyRequestPickup.created_at, BuddyRequestPickup.id)
    )
    return list(result.scalars().all())
