"""
Comparison SQLAlchemy ORM model.

Tracks a diff between a previous and a renewed policy: which changes the
model detected, its narrative summary and the token cost. Nothing writes
these rows yet; human reviews may reference them.
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey

from insurance_analyzer.db.base import Base, JSONType, new_uuid, utcnow


class Comparison(Base):
    __tablename__ = "comparisons"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    previous_policy_id = Column(
        "previous_contract_id", String(36), ForeignKey("policies.id", ondelete="CASCADE"), nullable=False
    )
    new_policy_id = Column(
        "new_contract_id", String(36), ForeignKey("policies.id", ondelete="CASCADE"), nullable=False
    )
    changes_detected = Column(JSONType, nullable=False)
    summary = Column(Text, nullable=False)
    ai_model = Column(String(100), nullable=False)
    ai_tokens_used = Column(Integer, nullable=False, default=0)
    comparison_result = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
