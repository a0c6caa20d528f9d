"""Posts API: buddy-request posts and pickups."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gymbuddy.core.deps import get_current_user
from gymbuddy.core.errors import DomainError, to_http
from gymbuddy.db.session import get_db
from gymbuddy.models.profile import Profile
from gymbuddy.schemas.post import (
    PickupResponse,
    PickupWithUser,
    PostCreate,
    PostResponse,
    SelectBuddyRequest,
)
from gymbuddy.schemas.profile import ProfileSummary
from gymbuddy.services.pickup_service import claim, create_post, get_post, list_pickups, select_buddy
from gymbuddy.services.profile_service import get_profiles

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create(
    data: PostCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    try:
        return create_post(
            db,
            current_user.id,
            data.post_type,
            content=data.content,
            image_url=data.image_url,
            video_url=data.video_url,
            tags=data.tags,
        )
    except DomainError as e:
        raise to_http(e)


@router.get("/{post_id}", response_model=PostResponse)
def read(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    try:
        return get_post(db, post_id)
    except DomainError as e:
        raise to_http(e)


@router.post("/{post_id}/pickups", response_model=PickupResponse, status_code=status.HTTP_201_CREATED)
def pick_up(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Pick up someone else's buddy request."""
    try:
        return claim(db, post_id, current_user.id)
    except DomainError as e:
        raise to_http(e)


@router.get("/{post_id}/pickups", response_model=list[PickupWithUser])
def pickups(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Users who picked up the request, oldest first."""
    try:
        rows = list_pickups(db, post_id)
    except DomainError as e:
        raise to_http(e)
    profiles = get_profiles(db, [p.user_id for p in rows])
    return [
        PickupWithUser(
            id=p.id,
            post_id=p.post_id,
            user_id=p.user_id,
            created_at=p.created_at,
            profile=ProfileSummary.model_validate(profiles[p.user_id])
            if p.user_id in profiles
            else ProfileSummary(id=p.user_id),
        )
        for p in rows
    ]


@router.post("/{post_id}/select", response_model=PostResponse)
def select(
    post_id: int,
    data: SelectBuddyRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Owner selects one of the users who picked up the request."""
    try:
        return select_buddy(db, post_id, current_user.id, data.user_id)
    except DomainError as e:
        raise to_http(e)
