"""
Stripe billing: subscription checkout, cancellation, human-review payments
and webhook mirroring into the local tables.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple

import stripe
from sqlalchemy.orm import Session

from insurance_analyzer.config import settings
from insurance_analyzer.constants import (
    HumanReviewStatus,
    PaymentStatus,
    PaymentType,
    SubscriptionPlan,
    SubscriptionStatus,
)
from insurance_analyzer.db.base import utcnow
from insurance_analyzer.models.human_review import HumanReview
from insurance_analyzer.models.payment import Payment
from insurance_analyzer.models.subscription import Subscription
from insurance_analyzer.models.user import User, UserProfile

logger = logging.getLogger(__name__)


class BillingError(Exception):
    """Raised when a Stripe call fails or billing is misconfigured."""
    pass


# Stripe has more subscription states than we track locally.
_STRIPE_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.TRIALING,
    "past_due": SubscriptionStatus.PAST_DUE,
    "unpaid": SubscriptionStatus.PAST_DUE,
    "incomplete": SubscriptionStatus.PAST_DUE,
    "paused": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "incomplete_expired": SubscriptionStatus.CANCELED,
}


def _configure() -> None:
    if not settings.STRIPE_SECRET_KEY:
        raise RuntimeError("STRIPE_SECRET_KEY must be set in .env")
    stripe.api_key = settings.STRIPE_SECRET_KEY


def _ts(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def price_for_plan(plan: SubscriptionPlan) -> str:
    prices = {
        SubscriptionPlan.AI_ANALYZER: settings.STRIPE_PRICE_AI_ANALYZER,
        SubscriptionPlan.AI_ANALYZER_PLUS: settings.STRIPE_PRICE_AI_ANALYZER_PLUS,
    }
    price_id = prices.get(plan)
    if not price_id:
        raise BillingError(f"No Stripe price configured for plan '{plan.value}'")
    return price_id


def plan_for_price(price_id: Optional[str]) -> Optional[SubscriptionPlan]:
    if price_id and price_id == settings.STRIPE_PRICE_AI_ANALYZER:
        return SubscriptionPlan.AI_ANALYZER
    if price_id and price_id == settings.STRIPE_PRICE_AI_ANALYZER_PLUS:
        return SubscriptionPlan.AI_ANALYZER_PLUS
    return None


def get_or_create_profile(db: Session, user: User) -> UserProfile:
    profile = user.profile
    if profile is None:
        profile = UserProfile(user_id=user.id)
        db.add(profile)
        db.flush()
    return profile


def get_or_create_customer(db: Session, user: User) -> str:
    """Return the user's Stripe customer id, creating the customer on first use."""
    profile = get_or_create_profile(db, user)
    if profile.stripe_customer_id:
        return profile.stripe_customer_id

    _configure()
    try:
        customer = stripe.Customer.create(
            email=user.email,
            name=user.name or None,
            metadata={"userId": user.id},
        )
    except stripe.StripeError as e:
        raise BillingError(f"Could not create Stripe customer: {e}") from e

    profile.stripe_customer_id = customer["id"]
    db.commit()
    logger.info(f"Created Stripe customer {customer['id']} for user {user.id}")
    return profile.stripe_customer_id


def create_checkout_session(db: Session, user: User, plan: SubscriptionPlan) -> str:
    """Open a subscription-mode Checkout session and return its hosted URL."""
    price_id = price_for_plan(plan)
    customer_id = get_or_create_customer(db, user)
    _configure()
    try:
        session = stripe.checkout.Session.create(
            mode="subscription",
            customer=customer_id,
            client_reference_id=user.id,
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=f"{settings.FRONTEND_ORIGIN}/billing?checkout=success",
            cancel_url=f"{settings.FRONTEND_ORIGIN}/billing?checkout=cancelled",
            metadata={"userId": user.id, "plan": plan.value},
            subscription_data={"metadata": {"userId": user.id, "plan": plan.value}},
        )
    except stripe.StripeError as e:
        raise BillingError(f"Could not create checkout session: {e}") from e

    logger.info(f"Checkout session {session['id']} created for user {user.id} ({plan.value})")
    return session["url"]


def cancel_subscription(db: Session, subscription: Subscription) -> Subscription:
    """Cancel at the end of the current period, on Stripe and locally."""
    _configure()
    try:
        stripe.Subscription.modify(subscription.stripe_subscription_id, cancel_at_period_end=True)
    except stripe.StripeError as e:
        raise BillingError(f"Could not cancel subscription: {e}") from e

    subscription.cancel_at_period_end = True
    db.commit()
    db.refresh(subscription)
    logger.info(f"Subscription {subscription.stripe_subscription_id} set to cancel at period end")
    return subscription


def create_human_review_payment(db: Session, user: User, review: HumanReview) -> Tuple[str, Payment]:
    """
    Create the PaymentIntent for a human review and record a pending Payment.

    Returns:
        (client_secret, payment row)
    """
    customer_id = get_or_create_customer(db, user)
    amount = settings.HUMAN_REVIEW_PRICE_CENTS
    _configure()
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount,
            currency="usd",
            customer=customer_id,
            automatic_payment_methods={"enabled": True},
            metadata={"userId": user.id, "humanReviewId": review.id, "type": PaymentType.HUMAN_REVIEW.value},
        )
    except stripe.StripeError as e:
        raise BillingError(f"Could not create payment intent: {e}") from e

    payment = Payment(
        user_id=user.id,
        stripe_payment_intent_id=intent["id"],
        amount=amount,
        currency="usd",
        status=PaymentStatus.PENDING,
        type=PaymentType.HUMAN_REVIEW,
        human_review_id=review.id,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info(f"PaymentIntent {intent['id']} created for human review {review.id}")
    return intent["client_secret"], payment


# ── Webhooks ─────────────────────────────────────────────────────


def construct_event(payload: bytes, signature: Optional[str]):
    """Verify the Stripe-Signature header and parse the event."""
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise RuntimeError("STRIPE_WEBHOOK_SECRET must be set in .env")
    if not signature:
        raise BillingError("Missing Stripe-Signature header")
    try:
        return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise BillingError(f"Invalid webhook payload: {e}") from e


def _user_for_customer(db: Session, customer_id: Optional[str]) -> Optional[str]:
    if not customer_id:
        return None
    profile = db.query(UserProfile).filter(UserProfile.stripe_customer_id == customer_id).first()
    return profile.user_id if profile else None


def _period(sub: Mapping[str, Any], field: str) -> Optional[datetime]:
    # Newer API versions report billing periods on the subscription items.
    value = sub.get(field)
    if value is None:
        items = (sub.get("items") or {}).get("data") or []
        if items:
            value = items[0].get(field)
    return _ts(value)


def _price_id(sub: Mapping[str, Any]) -> Optional[str]:
    items = (sub.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


def sync_subscription(db: Session, sub: Mapping[str, Any], user_id: Optional[str] = None) -> Optional[Subscription]:
    """Upsert the local Subscription and profile fields from a Stripe subscription object."""
    stripe_id = sub["id"]
    customer_id = sub.get("customer")
    meta = _metadata(sub)

    local = db.query(Subscription).filter(Subscription.stripe_subscription_id == stripe_id).first()
    user_id = user_id or meta.get("userId") or (local.user_id if local else None) or _user_for_customer(db, customer_id)
    if not user_id:
        logger.warning(f"Subscription {stripe_id} does not map to a known user, ignoring")
        return None

    if local is None:
        # One subscription row per user; a new Stripe subscription replaces the old one.
        local = db.query(Subscription).filter(Subscription.user_id == user_id).first()
    if local is None:
        local = Subscription(user_id=user_id)
        db.add(local)

    plan = plan_for_price(_price_id(sub))
    if plan is None and meta.get("plan") in {p.value for p in SubscriptionPlan}:
        plan = SubscriptionPlan(meta["plan"])
    status = _STRIPE_STATUS_MAP.get(sub.get("status"), SubscriptionStatus.PAST_DUE)

    local.stripe_subscription_id = stripe_id
    local.stripe_customer_id = customer_id
    local.status = status
    if plan is not None:
        local.plan = plan
    local.current_period_start = _period(sub, "current_period_start") or local.current_period_start or utcnow()
    local.current_period_end = _period(sub, "current_period_end") or local.current_period_end or utcnow()
    local.cancel_at_period_end = bool(sub.get("cancel_at_period_end"))

    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    if profile is None:
        profile = UserProfile(user_id=user_id)
        db.add(profile)
    profile.stripe_customer_id = profile.stripe_customer_id or customer_id
    profile.subscription_status = status
    profile.subscription_plan = local.plan

    db.commit()
    db.refresh(local)
    logger.info(f"Subscription {stripe_id} synced for user {user_id}: {status.value}")
    return local


def _handle_checkout_completed(db: Session, session: Mapping[str, Any]) -> None:
    subscription_id = session.get("subscription")
    if not subscription_id:
        logger.info(f"Checkout session {session.get('id')} has no subscription, nothing to mirror")
        return
    _configure()
    try:
        sub = stripe.Subscription.retrieve(subscription_id)
    except stripe.StripeError as e:
        raise BillingError(f"Could not retrieve subscription {subscription_id}: {e}") from e
    user_id = _metadata(session).get("userId") or session.get("client_reference_id")
    sync_subscription(db, sub, user_id=user_id)


def _handle_subscription_deleted(db: Session, sub: Mapping[str, Any]) -> None:
    local = db.query(Subscription).filter(Subscription.stripe_subscription_id == sub["id"]).first()
    if local is None:
        logger.warning(f"Deleted subscription {sub['id']} not found locally")
        return
    local.status = SubscriptionStatus.CANCELED
    local.cancel_at_period_end = False
    profile = db.query(UserProfile).filter(UserProfile.user_id == local.user_id).first()
    if profile is not None:
        profile.subscription_status = SubscriptionStatus.CANCELED
    db.commit()
    logger.info(f"Subscription {sub['id']} canceled for user {local.user_id}")


def _handle_payment_intent(db: Session, intent: Mapping[str, Any], succeeded: bool) -> None:
    payment = db.query(Payment).filter(Payment.stripe_payment_intent_id == intent["id"]).first()
    if payment is None:
        logger.warning(f"PaymentIntent {intent['id']} has no local payment row")
        return
    payment.status = PaymentStatus.SUCCEEDED if succeeded else PaymentStatus.FAILED
    if payment.human_review_id:
        review = db.query(HumanReview).filter(HumanReview.id == payment.human_review_id).first()
        if review is not None:
            if succeeded and review.status == HumanReviewStatus.PENDING:
                review.status = HumanReviewStatus.IN_PROGRESS
            elif not succeeded and review.status == HumanReviewStatus.PENDING:
                review.status = HumanReviewStatus.CANCELLED
    db.commit()
    logger.info(f"PaymentIntent {intent['id']} marked {payment.status.value}")


def handle_webhook_event(db: Session, event: Mapping[str, Any]) -> bool:
    """
    Mirror a verified Stripe event into the database.

    Returns:
        True if the event type is one we act on, False if it was ignored.
    """
    event_type = event["type"]
    obj = event["data"]["object"]

    if event_type == "checkout.session.completed":
        _handle_checkout_completed(db, obj)
    elif event_type in ("customer.subscription.created", "customer.subscription.updated"):
        sync_subscription(db, obj)
    elif event_type == "customer.subscription.deleted":
        _handle_subscription_deleted(db, obj)
    elif event_type == "payment_intent.succeeded":
        _handle_payment_intent(db, obj, succeeded=True)
    elif event_type == "payment_intent.payment_failed":
        _handle_payment_intent(db, obj, succeeded=False)
    else:
        logger.debug(f"Ignoring Stripe event {event_type}")
        return False
    return True
