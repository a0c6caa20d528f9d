"""Chat API: roster and direct messages between buddies."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gymbuddy.core.deps import get_current_user
from gymbuddy.core.errors import DomainError, to_http
from gymbuddy.db.session import get_db
from gymbuddy.models.profile import Profile
from gymbuddy.schemas.message import ChatUserResponse, MessageCreate, MessageResponse
from gymbuddy.services.chat_service import chat_roster, conversation, mark_conversation_read, send_message

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/roster", response_model=list[ChatUserResponse])
def roster(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Buddies the current user can chat with."""
    return chat_roster(db, current_user.id)


@router.get("/{user_id}/messages", response_model=list[MessageResponse])
def messages(
    user_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    return conversation(db, current_user.id, user_id, limit)


@router.post("/{user_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def post_message(
    user_id: str,
    data: MessageCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    try:
        return send_message(db, current_user.id, user_id, data.content)
    except DomainError as e:
        raise to_http(e)


@router.post("/{user_id}/read")
def read_conversation(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Mark messages from user_id as read."""
    return {"marked_read": mark_conversation_read(db, current_user.id, user_id)}
