"""
Subscription SQLAlchemy ORM model (mirrors the Stripe subscription).
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey

from insurance_analyzer.constants import SubscriptionPlan, SubscriptionStatus
from insurance_analyzer.db.base import Base, new_uuid, pg_enum, utcnow


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    stripe_subscription_id = Column(String(255), nullable=False, unique=True)
    stripe_customer_id = Column(String(255), nullable=False)
    status = Column(pg_enum(SubscriptionStatus, "subscription_status"), nullable=False)
    plan = Column(pg_enum(SubscriptionPlan, "subscription_plan"), nullable=False)
    current_period_start = Column(DateTime(timezone=True), nullable=False)
    current_period_end = Column(DateTime(timezone=True), nullable=False)
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
