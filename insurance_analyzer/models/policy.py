"""
Policy SQLAlchemy ORM model.

One uploaded insurance document. The raw PDF lives in S3; this row keeps
its location, the coverage window and the processing status.
"""
from sqlalchemy import Column, String, Integer, Text, Date, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from insurance_analyzer.constants import PDF_MIME_TYPE, PolicyStatus
from insurance_analyzer.db.base import Base, new_uuid, pg_enum, utcnow


class Policy(Base):
    __tablename__ = "policies"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)           # internal uuid name
    original_file_name = Column(String(255), nullable=False)
    s3_key = Column(String(500), nullable=False)
    s3_bucket = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False, default=PDF_MIME_TYPE)
    coverage_start = Column(Date, nullable=False)
    coverage_end = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    status = Column(pg_enum(PolicyStatus, "contract_status"), nullable=False, default=PolicyStatus.UPLOADED)
    is_deleted = Column(Boolean, nullable=False, default=False)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="policies")
    analysis = relationship("Analysis", back_populates="policy", uselist=False, cascade="all, delete-orphan")
