"""
EmailNotification SQLAlchemy ORM model: outbound e-mail log.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey

from insurance_analyzer.constants import EmailNotificationStatus, EmailNotificationType
from insurance_analyzer.db.base import Base, new_uuid, pg_enum, utcnow


class EmailNotification(Base):
    __tablename__ = "email_notifications"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(pg_enum(EmailNotificationType, "email_notification_type"), nullable=False)
    policy_id = Column("contract_id", String(36), ForeignKey("policies.id", ondelete="CASCADE"), nullable=True)
    analysis_id = Column(String(36), ForeignKey("analyses.id", ondelete="CASCADE"), nullable=True)
    comparison_id = Column(String(36), ForeignKey("comparisons.id", ondelete="CASCADE"), nullable=True)
    resend_email_id = Column(String(255), nullable=True)
    status = Column(
        pg_enum(EmailNotificationStatus, "email_notification_status"),
        nullable=False,
        default=EmailNotificationStatus.PENDING,
    )
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
