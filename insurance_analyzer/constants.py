"""
Shared enums and constants.
"""
import enum


PDF_MIME_TYPE = "application/pdf"
DATE_FORMAT_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class PolicyStatus(str, enum.Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    ANALYZED = "analyzed"
    FAILED = "failed"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    TRIALING = "trialing"


class SubscriptionPlan(str, enum.Enum):
    AI_ANALYZER = "ai_analyzer"
    AI_ANALYZER_PLUS = "ai_analyzer_plus"


class HumanReviewStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentType(str, enum.Enum):
    SUBSCRIPTION = "subscription"
    HUMAN_REVIEW = "human_review"
    ONE_TIME = "one_time"


class EmailNotificationType(str, enum.Enum):
    ANALYSIS_READY = "analysis_ready"
    COMPARISON_READY = "comparison_ready"
    HUMAN_REVIEW_READY = "human_review_ready"
    BILLING = "billing"
    PASSWORD_RESET = "password_reset"


class EmailNotificationStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
