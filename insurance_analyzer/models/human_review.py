"""
HumanReview SQLAlchemy ORM model.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey

from insurance_analyzer.constants import HumanReviewStatus
from insurance_analyzer.db.base import Base, new_uuid, pg_enum, utcnow


class HumanReview(Base):
    __tablename__ = "human_reviews"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    policy_id = Column("contract_id", String(36), ForeignKey("policies.id", ondelete="CASCADE"), nullable=True)
    analysis_id = Column(String(36), ForeignKey("analyses.id", ondelete="CASCADE"), nullable=True)
    comparison_id = Column(String(36), ForeignKey("comparisons.id", ondelete="CASCADE"), nullable=True)
    status = Column(pg_enum(HumanReviewStatus, "human_review_status"), nullable=False, default=HumanReviewStatus.PENDING)
    requested_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    reviewer_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
