"""
Analysis SQLAlchemy ORM model.

The LLM-generated markdown report for exactly one policy. The structured
JSON columns are optional; current reports only fill ``analysis_result``.
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from insurance_analyzer.db.base import Base, JSONType, new_uuid, utcnow


class Analysis(Base):
    __tablename__ = "analyses"

    id = Column(String(36), primary_key=True, default=new_uuid)
    policy_id = Column(
        "contract_id",
        String(36),
        ForeignKey("policies.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    summary = Column(Text, nullable=True)
    key_terms = Column(JSONType, nullable=True)
    coverage_details = Column(JSONType, nullable=True)
    exclusions = Column(JSONType, nullable=True)
    premiums = Column(JSONType, nullable=True)
    missed_coverage = Column(JSONType, nullable=True)
    coverage_gaps = Column(JSONType, nullable=True)
    hidden_clauses = Column(JSONType, nullable=True)
    common_issues = Column(JSONType, nullable=True)
    roofing_siding_analysis = Column(JSONType, nullable=True)
    ai_model = Column(String(100), nullable=False)
    ai_tokens_used = Column(Integer, nullable=False, default=0)
    analysis_prompt = Column(Text, nullable=True)
    analysis_result = Column(Text, nullable=False)   # full markdown report
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    policy = relationship("Policy", back_populates="analysis")
