"""Buddy matching and claim policy constants."""

from __future__ import annotations

# Maximum outstanding pickups on a single buddy-request post
MAX_PICKUPS_PER_POST = 5

# Nearby matcher page size
NEARBY_DEFAULT_LIMIT = 20
NEARBY_MAX_LIMIT = 50

# Relationship statuses (stored lowercase)
PENDING = "pending"
ACCEPTED = "accepted"
BLOCKED = "blocked"

# Responses a recipient may give to a pending request
DECISIONS = {"accept": ACCEPTED, "block": BLOCKED}

# Post types
POST_TYPE_POST = "post"
POST_TYPE_SHORT = "short"
POST_TYPE_BUDDY_REQUEST = "buddy_request"
POST_TYPES = (POST_TYPE_POST, POST_TYPE_SHORT, POST_TYPE_BUDDY_REQUEST)

# Notification type tags
NOTIFY_BUDDY_REQUEST = "buddy_request"
NOTIFY_BUDDY_ACCEPTED = "buddy_accepted"
NOTIFY_PICKUP = "buddy_request_pickup"
NOTIFY_SELECTED = "buddy_selected"
