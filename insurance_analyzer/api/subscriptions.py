"""
Subscription API routes (Stripe Checkout).
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from insurance_analyzer.dependencies import get_current_user, get_db
from insurance_analyzer.models.subscription import Subscription
from insurance_analyzer.models.user import User
from insurance_analyzer.schemas.base import MessageResponse
from insurance_analyzer.schemas.billing_schema import CheckoutRequest, CheckoutResponse, SubscriptionOut
from insurance_analyzer.services import billing_service
from insurance_analyzer.services.billing_service import BillingError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscriptions", tags=["Billing"])


@router.post("/create-checkout", response_model=CheckoutResponse)
def create_checkout(
    body: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        checkout_url = billing_service.create_checkout_session(db, current_user, body.plan)
    except BillingError as e:
        logger.error(f"Checkout failed for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create checkout session")
    return CheckoutResponse(checkout_url=checkout_url)


@router.get("/current")
async def get_current_subscription(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The user's subscription, or ``{"subscription": null}`` when there is none."""
    subscription = db.query(Subscription).filter(Subscription.user_id == current_user.id).first()
    if subscription is None:
        return {"subscription": None}
    return SubscriptionOut.model_validate(subscription).model_dump(by_alias=True, mode="json")


@router.post("/cancel", response_model=MessageResponse)
def cancel_subscription(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    subscription = db.query(Subscription).filter(Subscription.user_id == current_user.id).first()
    if subscription is None:
        raise HTTPException(status_code=404, detail="No subscription found")
    if subscription.cancel_at_period_end:
        raise HTTPException(status_code=400, detail="Subscription is already set to cancel")

    try:
        billing_service.cancel_subscription(db, subscription)
    except BillingError as e:
        logger.error(f"Cancel failed for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to cancel subscription")

    return MessageResponse(message="Subscription will be canceled at the end of the billing period")
