"""
Current-user API routes.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from insurance_analyzer.dependencies import get_current_user, get_db
from insurance_analyzer.models.user import User
from insurance_analyzer.schemas.user_schema import MeOut, UpdateMeRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["User"])


def _me(user: User) -> MeOut:
    profile = user.profile
    return MeOut(
        id=user.id,
        email=user.email,
        name=user.name or "",
        subscription_status=profile.subscription_status if profile else None,
        subscription_plan=profile.subscription_plan if profile else None,
        created_at=profile.created_at if profile else user.created_at,
    )


@router.get("/me", response_model=MeOut, response_model_exclude_none=True)
async def get_me(current_user: User = Depends(get_current_user)):
    """Return the signed-in user with their subscription fields."""
    return _me(current_user)


@router.patch("/me", response_model=MeOut, response_model_exclude_none=True)
async def update_me(
    body: UpdateMeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    current_user.name = body.name
    db.commit()
    db.refresh(current_user)
    logger.info(f"User {current_user.id} updated their name")
    return _me(current_user)
