"""
Payment SQLAlchemy ORM model (one Stripe PaymentIntent).
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey

from insurance_analyzer.constants import PaymentStatus, PaymentType
from insurance_analyzer.db.base import Base, new_uuid, pg_enum, utcnow


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    stripe_payment_intent_id = Column(String(255), nullable=False, unique=True)
    amount = Column(Integer, nullable=False)  # cents
    currency = Column(String(10), nullable=False, default="usd")
    status = Column(pg_enum(PaymentStatus, "payment_status"), nullable=False)
    type = Column(pg_enum(PaymentType, "payment_type"), nullable=False)
    human_review_id = Column(String(36), ForeignKey("human_reviews.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
