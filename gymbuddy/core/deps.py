"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from gymbuddy.core.security import decode_access_token
from gymbuddy.db.session import get_db
from gymbuddy.models.profile import Profile
from gymbuddy.services.profile_service import get_or_create_profile

security = HTTPBearer(auto_error=False)


def user_id_from_token(token: str) -> str | None:
    """Return the auth provider's user id for a valid token, else None."""
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    return str(payload["sub"])


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Profile:
    """Require authenticated user. Raises 401 if not authenticated."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = user_id_from_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return get_or_create_profile(db, user_id)
