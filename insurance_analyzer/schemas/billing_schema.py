"""
Pydantic schemas for subscriptions and human reviews.
"""
from datetime import datetime
from typing import List, Optional

from insurance_analyzer.constants import HumanReviewStatus, SubscriptionPlan, SubscriptionStatus
from insurance_analyzer.schemas.base import CamelModel


class CheckoutRequest(CamelModel):
    plan: SubscriptionPlan


class CheckoutResponse(CamelModel):
    checkout_url: str


class SubscriptionOut(CamelModel):
    id: str
    status: SubscriptionStatus
    plan: SubscriptionPlan
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool


class HumanReviewRequest(CamelModel):
    policy_id: Optional[str] = None
    analysis_id: Optional[str] = None
    comparison_id: Optional[str] = None


class PaymentIntentOut(CamelModel):
    client_secret: str
    amount: int


class HumanReviewCreateResponse(CamelModel):
    review_id: str
    payment_intent: PaymentIntentOut
    message: str


class HumanReviewOut(CamelModel):
    id: str
    policy_id: Optional[str] = None
    analysis_id: Optional[str] = None
    comparison_id: Optional[str] = None
    status: HumanReviewStatus
    reviewer_notes: Optional[str] = None
    requested_at: datetime
    completed_at: Optional[datetime] = None


class HumanReviewListResponse(CamelModel):
    reviews: List[HumanReviewOut]
