"""JWT utilities for tokens issued by the auth provider."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from gymbuddy.core.config import settings


def create_access_token(subject: str, extra: dict[str, Any] | None = None) -> str:
    """Create a JWT access token. Used by tooling and tests."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {
        "sub": str(subject),
        "exp": expire,
        "iat": now,
    }
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    if extra:
        payload.update(extra)
    return jwt.encode(
        payload,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT. Returns payload or None if invalid."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except JWTError:
        return None
