"""Direct messages between buddies and the chat roster."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from gymbuddy.core.change_feed import INSERT, UPDATE, ChangeEvent, change_feed
from gymbuddy.core.errors import MissingContent, NotBuddies
from gymbuddy.models.message import Message
from gymbuddy.schemas.message import ChatUserResponse
from gymbuddy.services.buddy_service import accepted_buddy_ids, are_buddies
from gymbuddy.services.profile_service import get_profiles


def _between(a: str, b: str):
    return or_(
        and_(Message.sender_id == a, Message.receiver_id == b),
        and_(Message.sender_id == b, Message.receiver_id == a),
    )


def send_message(db: Session, sender_id: str, receiver_id: str, content: str) -> Message:
    """Send a message to an accepted buddy."""
    content = (content or "").strip()
    if not content:
        raise MissingContent("Message cannot be empty")
    if not are_buddies(db, sender_id, receiver_id):
        raise NotBuddies()

    msg = Message(sender_id=sender_id, receiver_id=receiver_id, content=content)
    db.add(msg)
    db.commit()
    db.refresh(msg)
    change_feed.publish(
        ChangeEvent(
            "messages",
            INSERT,
            new={"id": msg.id, "sender_id": sender_id, "receiver_id": receiver_id},
        )
    )
    return msg


def conversation(db: Session, user_id: str, other_id: str, limit: int = 100) -> list[Message]:
    """Most recent messages between two users, oldest first."""
    result = db.execute(
        select(Message)
        .where(_between(user_id, other_id))
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
    )
    return list(reversed(result.scalars().all()))


def mark_conversation_read(db: Session, user_id: str, other_id: str) -> int:
    """Mark messages from other_id to user_id read. Returns how many changed."""
    result = db.execute(
        update(Message)
        .where(
            Message.sender_id == other_id,
            Message.receiver_id == user_id,
            Message.read_at.is_(None),
        )
        .values(read_at=datetime.now(timezone.utc))
    )
    db.commit()
    changed = result.rowcount or 0
    if changed:
        change_feed.publish(
            ChangeEvent("messages", UPDATE, new={"sender_id": other_id, "receiver_id": user_id})
        )
    return changed


def chat_roster(db: Session, user_id: str) -> list[ChatUserResponse]:
    """Accepted buddies with their last message and unread count, most recent chat first."""
    buddy_ids = accepted_buddy_ids(db, user_id)
    if not buddy_ids:
        return []
    profiles = get_profiles(db, buddy_ids)

    unread_rows = db.execute(
        select(Message.sender_id, func.count(Message.id))
        .where(
            Message.receiver_id == user_id,
            Message.sender_id.in_(buddy_ids),
            Message.read_at.is_(None),
        )
        .group_by(Message.sender_id)
    ).all()
    unread = {sender: count for sender, count in unread_rows}

    roster: list[ChatUserResponse] = []
    for bid in buddy_ids:
        p = profiles.get(bid)
        if not p:
            continue
        last = db.execute(
            select(Message)
            .where(_between(user_id, bid))
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        roster.append(
            ChatUserResponse(
                id=p.id,
                full_name=p.full_name or "Unknown User",
                username=p.username or "unknown",
                avatar_url=p.avatar_url,
                last_message=last.content if last else None,
                last_message_time=last.created_at if last else None,
                unread_count=unread.get(bid, 0),
            )
        )

    # Buddies with messages first, newest conversation first
    roster.sort(
        key=lambda u: (u.last_message_time is None, -(u.last_message_time.timestamp() if u.last_message_time else 0))
    )
    return roster
