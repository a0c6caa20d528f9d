"""SQLAlchemy models."""

from __future__ import annotations

from gymbuddy.models.buddy import Buddy
from gymbuddy.models.message import Message
from gymbuddy.models.notification import Notification
from gymbuddy.models.pickup import BuddyRequestPickup
from gymbuddy.models.post import Post
from gymbuddy.models.profile import Profile

__all__ = [
    "Profile",
    "Buddy",
    "BuddyRequestPickup",
    "Message",
    "Notification",
    "Post",
]
