"""
Transactional e-mail via Resend.

Each send is recorded as an EmailNotification row (pending -> sent / failed).
Senders run as background tasks after the response is returned, so they open
their own DB session and never raise.
"""
import html
import logging
from typing import Optional

import resend

from insurance_analyzer.config import settings
from insurance_analyzer.constants import EmailNotificationStatus, EmailNotificationType
from insurance_analyzer.db.base import utcnow
from insurance_analyzer.db.session import SessionLocal
from insurance_analyzer.models.email_notification import EmailNotification

logger = logging.getLogger(__name__)

EMAIL_COLORS = {
    "primary": "#ef443b",
    "primary_foreground": "#ffffff",
    "background": "#ffffff",
    "foreground": "#1a1a1a",
    "card": "#f8f9fa",
    "muted_foreground": "#6b7280",
    "border": "#e5e7eb",
}

_ANALYSIS_SECTIONS = [
    "Executive Summary",
    "Key Terms &amp; Conditions",
    "Coverage Details",
    "Exclusions",
    "Premiums &amp; Payment Information",
    "Potential Issues &amp; Concerns",
    "Recommendations",
]


def _layout(title: str, body_html: str) -> str:
    c = EMAIL_COLORS
    return f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>{title}</title></head>
  <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; line-height: 1.6; color: {c['foreground']}; max-width: 600px; margin: 0 auto; padding: 20px; background-color: {c['background']};">
    <div style="background: {c['primary']}; padding: 30px; text-align: center; border-radius: 8px 8px 0 0;">
      <h1 style="color: {c['primary_foreground']}; margin: 0; font-size: 24px; font-weight: 600;">{title}</h1>
    </div>
    <div style="background: {c['card']}; padding: 30px; border-radius: 0 0 8px 8px; border: 1px solid {c['border']}; border-top: none;">
      {body_html}
      <p style="font-size: 14px; color: {c['muted_foreground']}; margin-top: 20px; margin-bottom: 0;">
        Best regards,<br>The Insurance Analyzer Team
      </p>
    </div>
  </body>
</html>"""


def _button(url: str, label: str) -> str:
    c = EMAIL_COLORS
    return (
        f'<div style="text-align: center; margin: 30px 0;">'
        f'<a href="{url}" style="display: inline-block; background: {c["primary"]}; '
        f'color: {c["primary_foreground"]}; padding: 12px 30px; text-decoration: none; '
        f'border-radius: 6px; font-weight: 600;">{label}</a></div>'
    )


def render_analysis_complete_email(display_name: str, policy_file_name: str, report_url: str, policy_url: str) -> str:
    sections = "".join(f"<li>{s}</li>" for s in _ANALYSIS_SECTIONS)
    body = (
        f"<p>Hi {html.escape(display_name)},</p>"
        f"<p>Great news! Your AI-powered analysis for <strong>{html.escape(policy_file_name)}</strong> "
        f"has been completed successfully.</p>"
        f"<p>The analysis includes a comprehensive breakdown of:</p><ul>{sections}</ul>"
        f"{_button(report_url, 'View Full Report')}"
        f'<p style="font-size: 14px; color: {EMAIL_COLORS["muted_foreground"]};">'
        f'You can also view the policy details <a href="{policy_url}">here</a>.</p>'
    )
    return _layout("Your Analysis is Ready!", body)


def render_password_reset_email(display_name: str, reset_url: str) -> str:
    body = (
        f"<p>Hi {html.escape(display_name)},</p>"
        f"<p>We received a request to reset your password. The link below is valid for "
        f"{settings.RESET_TOKEN_EXPIRE_MINUTES} minutes.</p>"
        f"{_button(reset_url, 'Reset Password')}"
        f"<p>If you didn't request this, you can safely ignore this email.</p>"
    )
    return _layout("Reset Your Password", body)


def _deliver(
    notification_type: EmailNotificationType,
    user_id: str,
    to_email: str,
    subject: str,
    html_body: str,
    policy_id: Optional[str] = None,
    analysis_id: Optional[str] = None,
) -> Optional[EmailNotification]:
    """Log a pending notification, send it, then flip it to sent or failed."""
    db = SessionLocal()
    try:
        notification = EmailNotification(
            user_id=user_id,
            type=notification_type,
            policy_id=policy_id,
            analysis_id=analysis_id,
            status=EmailNotificationStatus.PENDING,
        )
        db.add(notification)
        db.commit()

        try:
            if not settings.RESEND_API_KEY:
                raise RuntimeError("RESEND_API_KEY must be set in .env")
            resend.api_key = settings.RESEND_API_KEY
            result = resend.Emails.send({
                "from": settings.EMAIL_FROM,
                "to": [to_email],
                "subject": subject,
                "html": html_body,
            })
            notification.resend_email_id = result.get("id") if result else None
            notification.status = EmailNotificationStatus.SENT
            notification.sent_at = utcnow()
            logger.info(f"{notification_type.value} email sent to {to_email}, Resend ID: {notification.resend_email_id}")
        except Exception as e:
            notification.status = EmailNotificationStatus.FAILED
            logger.error(f"Failed to send {notification_type.value} email to {to_email}: {e}", exc_info=True)

        db.commit()
        db.refresh(notification)
        return notification
    except Exception as e:
        db.rollback()
        logger.error(f"Could not record {notification_type.value} email for user {user_id}: {e}", exc_info=True)
        return None
    finally:
        db.close()


def send_analysis_complete_email(
    user_id: str,
    user_email: str,
    user_name: Optional[str],
    policy_file_name: str,
    analysis_id: str,
    policy_id: str,
) -> Optional[EmailNotification]:
    """Notify the policy owner that their report is ready (non-critical)."""
    report_url = f"{settings.FRONTEND_ORIGIN}/reports/{analysis_id}"
    policy_url = f"{settings.FRONTEND_ORIGIN}/policies/{policy_id}"
    html_body = render_analysis_complete_email(user_name or "there", policy_file_name, report_url, policy_url)
    return _deliver(
        EmailNotificationType.ANALYSIS_READY,
        user_id,
        user_email,
        f"Your insurance policy analysis is ready: {policy_file_name}",
        html_body,
        policy_id=policy_id,
        analysis_id=analysis_id,
    )


def send_password_reset_email(
    user_id: str, user_email: str, user_name: Optional[str], reset_url: str
) -> Optional[EmailNotification]:
    html_body = render_password_reset_email(user_name or "there", reset_url)
    return _deliver(
        EmailNotificationType.PASSWORD_RESET,
        user_id,
        user_email,
        "Reset your Insurance Analyzer password",
        html_body,
    )
