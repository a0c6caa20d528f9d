"""Domain errors raised by the service layer.

Every error is a ``ValueError`` so callers that only care about "the request
was rejected" can keep catching that. Routers translate them with ``to_http``.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class DomainError(ValueError):
    """Base class for buddy/claim/notification errors."""

    reason: str = "unknown"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


# ---- validation ----


class ValidationError(DomainError):
    reason = "invalid"
    status_code = status.HTTP_400_BAD_REQUEST


class LocationUnavailable(ValidationError):
    reason = "location_unavailable"
    message = "No location available. Update your location first."


class SelfRequest(ValidationError):
    reason = "self_request"
    message = "Cannot send a buddy request to yourself"


class NotAClaimant(ValidationError):
    reason = "not_a_claimant"
    message = "That user has not picked up this request"


class MissingContent(ValidationError):
    reason = "missing_content"
    message = "Content is required"


# ---- authorization ----


class AuthorizationError(DomainError):
    reason = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotAuthorized(AuthorizationError):
    reason = "not_authorized"
    message = "Not allowed to act on this record"


class NotOwner(AuthorizationError):
    reason = "not_owner"
    message = "Only the post owner can do this"


class SelfClaim(AuthorizationError):
    reason = "self_claim"
    message = "Cannot pick up your own buddy request"


class NotBuddies(AuthorizationError):
    reason = "not_buddies"
    message = "You can only message your buddies"


# ---- not found ----


class NotFoundError(DomainError):
    reason = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ProfileNotFound(NotFoundError):
    message = "User not found"


class RelationshipNotFound(NotFoundError):
    message = "Buddy request not found"


class PostNotFound(NotFoundError):
    message = "Post not found"


class NotificationNotFound(NotFoundError):
    message = "Notification not found"


# ---- state conflicts ----


class StateConflictError(DomainError):
    reason = "conflict"
    status_code = status.HTTP_409_CONFLICT


class AlreadyExists(StateConflictError):
    reason = "already_exists"
    message = "Already exists"


class RelationshipBlocked(StateConflictError):
    reason = "blocked"
    message = "This connection has been blocked"


class InvalidState(StateConflictError):
    reason = "invalid_state"
    message = "Invalid state for this action"


class AlreadyClaimed(StateConflictError):
    reason = "already_claimed"
    message = "You have already picked up this request"


class PostDecided(StateConflictError):
    reason = "post_decided"
    message = "A buddy has already been selected for this request"


class AlreadyDecided(StateConflictError):
    reason = "already_decided"
    message = "A different buddy has already been selected"


class NotABuddyRequest(StateConflictError):
    reason = "not_a_buddy_request"
    message = "Only buddy request posts can be picked up"


# ---- capacity ----


class CapacityError(DomainError):
    reason = "capacity"
    status_code = status.HTTP_409_CONFLICT


class CapacityExceeded(CapacityError):
    reason = "capacity_exceeded"
    message = "This request already has the maximum number of pickups"


# ---- infrastructure ----


class ServiceUnavailable(DomainError):
    reason = "unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class MatchServiceUnavailable(ServiceUnavailable):
    reason = "match_service_unavailable"
    message = "Could not find nearby users. The location service is unavailable."


def to_http(exc: DomainError) -> HTTPException:
    """Map a domain error to the HTTPException the router raises."""
    return HTTPException(status_code=exc.status_code, detail=str(exc))
