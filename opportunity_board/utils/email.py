"""
Outgoing mail: SMTP transport plus the account and notification messages
the board sends. Every sender returns a bool and never raises.
"""

from __future__ import annotations

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Tuple

from opportunity_board.config import settings
from opportunity_board.models.notification import NotificationType

logger = logging.getLogger(__name__)

NOTIFICATION_SUBJECTS = {
    NotificationType.FRIEND_REQUEST: "Friend request update",
    NotificationType.ORGANIZATION_UPDATE: "Organization update",
    NotificationType.NEW_OPPORTUNITY: "New opportunity from an organization you follow",
    NotificationType.DEADLINE_REMINDER: "Deadline reminder",
    NotificationType.APPLICATION_UPDATE: "Application update",
    NotificationType.NEW_MESSAGE: "You have a new message",
    NotificationType.SYSTEM: "Account notice",
}


def is_email_enabled() -> bool:
    """Return True when email notifications are configured and enabled."""
    return bool(
        settings.EMAIL_NOTIFICATIONS_ENABLED
        and settings.SMTP_SERVER
        and settings.EMAIL_FROM
    )


# ======================
# TRANSPORT
# ======================

def _build_message(to_email: str, subject: str, body_text: str, body_html: Optional[str]) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(body_text, "plain", "utf-8"))
    if body_html:
        msg.attach(MIMEText(body_html, "html", "utf-8"))
    return msg


def _connect() -> smtplib.SMTP:
    smtp_class = smtplib.SMTP_SSL if settings.SMTP_USE_SSL else smtplib.SMTP
    return smtp_class(
        settings.SMTP_SERVER,
        settings.SMTP_PORT,
        timeout=settings.SMTP_TIMEOUT_SECONDS,
    )


def send_email(
    *,
    to_email: str,
    subject: str,
    body_text: str,
    body_html: Optional[str] = None,
) -> bool:
    if not is_email_enabled():
        logger.info("Email disabled; dropping '%s' for %s", subject, to_email)
        return False

    msg = _build_message(to_email, subject, body_text, body_html)
    password = settings.EMAIL_PASSWORD or ""
    try:
        with _connect() as server:
            if settings.SMTP_USE_TLS and not settings.SMTP_USE_SSL:
                server.starttls()
            if password:
                server.login(settings.SMTP_USERNAME or settings.EMAIL_FROM, password)
            server.sendmail(settings.EMAIL_FROM, [to_email], msg.as_string())
        return True
    except Exception as exc:
        logger.warning("Email send failed for '%s': %s", to_email, exc)
        return False


# ======================
# MESSAGES
# ======================

def _greeting(first_name: Optional[str]) -> str:
    return f"Hi {(first_name or '').strip() or 'there'},"


def send_two_factor_code(*, to_email: str, first_name: Optional[str], code: str) -> bool:
    ttl = settings.TWO_FACTOR_CODE_TTL_MINUTES
    return send_email(
        to_email=to_email,
        subject=f"Your {settings.APP_NAME} verification code",
        body_text=(
            f"{_greeting(first_name)}\n\n"
            f"Your verification code is {code}.\n"
            f"It expires in {ttl} minutes.\n\n"
            "If you didn't try to sign in, you can ignore this email."
        ),
        body_html=(
            f"<p>{html.escape(_greeting(first_name))}</p>"
            f"<p>Your verification code is <b>{html.escape(code)}</b>. It expires in {ttl} minutes.</p>"
        ),
    )


def send_password_reset_link(*, to_email: str, first_name: Optional[str], reset_url: str) -> bool:
    ttl = settings.PASSWORD_RESET_TOKEN_TTL_MINUTES
    return send_email(
        to_email=to_email,
        subject=f"Reset your {settings.APP_NAME} password",
        body_text=(
            f"{_greeting(first_name)}\n\n"
            "We received a request to reset your password. Open the link below "
            f"within {ttl} minutes to choose a new one:\n\n"
            f"{reset_url}\n\n"
            "If you didn't request a password reset, you can ignore this email."
        ),
        body_html=(
            f"<p>{html.escape(_greeting(first_name))}</p>"
            f"<p><a href=\"{html.escape(reset_url)}\">Choose a new password</a> "
            f"(valid for {ttl} minutes).</p>"
        ),
    )


def compose_notification_email(
    *,
    first_name: Optional[str],
    notification_type: NotificationType,
    message: str,
    action_url: str,
) -> Tuple[str, str]:
    """Subject and plain-text body for a notification email."""
    subject = NOTIFICATION_SUBJECTS.get(
        NotificationType(notification_type),
        f"New notification from {settings.APP_NAME}",
    )
    body_text = (
        f"{_greeting(first_name)}\n\n"
        f"{message}\n\n"
        f"Open {action_url} to view details."
    )
    return subject, body_text
