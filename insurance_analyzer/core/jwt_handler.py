"""
Signed session and password-reset tokens.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from insurance_analyzer.config import settings

SESSION_PURPOSE = "session"
PASSWORD_RESET_PURPOSE = "password_reset"


def create_access_token(
    data: dict, expires_delta: Optional[timedelta] = None, purpose: str = SESSION_PURPOSE
) -> str:
    """Create a signed JWT with the given payload."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta
        or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "purpose": purpose})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_password_reset_token(user_id: str, fingerprint: str) -> str:
    return create_access_token(
        {"sub": user_id, "pwd": fingerprint},
        expires_delta=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        purpose=PASSWORD_RESET_PURPOSE,
    )


def decode_access_token(token: str, purpose: str = SESSION_PURPOSE) -> dict:
    """
    Decode and verify a JWT.
    Raises JWTError on invalid / expired tokens or a purpose mismatch.
    """
    payload = jwt.decode(
        token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
    )
    if payload.get("purpose") != purpose:
        raise JWTError(f"Token is not a {purpose} token")
    return payload


# Re-export so callers can catch the right exception.
__all__ = [
    "create_access_token",
    "create_password_reset_token",
    "decode_access_token",
    "JWTError",
    "SESSION_PURPOSE",
    "PASSWORD_RESET_PURPOSE",
]
