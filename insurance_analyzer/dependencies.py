"""
Shared FastAPI dependencies.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from insurance_analyzer.core.security import bearer_scheme, session_cookie
from insurance_analyzer.core.jwt_handler import decode_access_token, JWTError
from insurance_analyzer.db.session import SessionLocal
from insurance_analyzer.models.user import User

logger = logging.getLogger(__name__)


def get_db():
    """Yield a SQLAlchemy session, closing it after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_token(
    cookie_token: Optional[str] = Depends(session_cookie),
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Session token from the cookie, falling back to the Bearer header."""
    if cookie_token:
        return cookie_token
    if bearer and bearer.credentials:
        return bearer.credentials
    return None


def get_optional_user(
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Resolve the session to a user, or None when there is no valid session."""
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except JWTError as e:
        logger.warning(f"Rejected session token: {e}")
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    return db.query(User).filter(User.id == user_id).first()


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Require a valid session.  Used as a dependency for protected endpoints."""
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
