"""
Authentication API routes.

Email/password sessions: a signed token is set as an HTTP-only cookie and
also returned in the body for API clients.
"""
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from insurance_analyzer.config import settings
from insurance_analyzer.core.hashing import hash_password, password_fingerprint, verify_password
from insurance_analyzer.core.jwt_handler import (
    PASSWORD_RESET_PURPOSE,
    JWTError,
    create_access_token,
    create_password_reset_token,
    decode_access_token,
)
from insurance_analyzer.core.security import clear_session_cookie, set_session_cookie
from insurance_analyzer.dependencies import get_db, get_optional_user
from insurance_analyzer.models.user import User, UserProfile
from insurance_analyzer.schemas.base import MessageResponse
from insurance_analyzer.schemas.user_schema import (
    AuthResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    UserOut,
)
from insurance_analyzer.services import email_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _session_token(user: User) -> str:
    return create_access_token({"sub": user.id, "email": user.email, "name": user.name})


@router.post("/sign-up/email", response_model=AuthResponse)
async def sign_up(response: Response, body: SignUpRequest, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == body.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        name=body.name,
        email=body.email,
        hashed_password=hash_password(body.password),
    )
    user.profile = UserProfile()
    db.add(user)
    db.commit()
    db.refresh(user)

    token = _session_token(user)
    set_session_cookie(response, token)
    logger.info(f"New user registered: {user.email}")

    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.post("/sign-in/email", response_model=AuthResponse)
async def sign_in(response: Response, body: SignInRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email).first()
    if not user or not verify_password(body.password, user.hashed_password):
        logger.warning(f"Failed sign-in for {body.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = _session_token(user)
    set_session_cookie(response, token)
    logger.info(f"User signed in: {user.email}")

    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.post("/sign-out", response_model=MessageResponse)
async def sign_out(response: Response):
    clear_session_cookie(response)
    return MessageResponse(message="Signed out")


@router.get("/get-session", response_model=Optional[SessionResponse])
async def get_session(user: Optional[User] = Depends(get_optional_user)):
    """Current session, or ``null`` when not signed in."""
    if user is None:
        return None
    return SessionResponse(user=UserOut.model_validate(user))


@router.post("/forget-password", response_model=MessageResponse)
async def forget_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    # Same answer whether or not the account exists.
    user = db.query(User).filter(User.email == body.email).first()
    if user:
        token = create_password_reset_token(user.id, password_fingerprint(user.hashed_password))
        reset_url = f"{settings.FRONTEND_ORIGIN}/reset-password?token={token}"
        background_tasks.add_task(
            email_service.send_password_reset_email, user.id, user.email, user.name, reset_url
        )
        logger.info(f"Password reset requested for user {user.id}")
    else:
        logger.info(f"Password reset requested for unknown email {body.email}")

    return MessageResponse(message="If an account exists for that email, a reset link has been sent")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        payload = decode_access_token(body.token, purpose=PASSWORD_RESET_PURPOSE)
    except JWTError as e:
        logger.warning(f"Rejected password reset token: {e}")
        raise HTTPException(status_code=400, detail="Invalid or expired token")

    user = db.query(User).filter(User.id == payload.get("sub")).first()
    if not user or payload.get("pwd") != password_fingerprint(user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid or expired token")

    user.hashed_password = hash_password(body.new_password)
    db.commit()
    logger.info(f"Password reset for user {user.id}")

    return MessageResponse(message="Password has been reset")
