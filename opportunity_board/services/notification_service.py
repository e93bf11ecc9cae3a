from __future__ import annotations

import html
import logging
import threading
from typing import List, Optional

from sqlalchemy.orm import Session

from opportunity_board.config import settings
from opportunity_board.models import User
from opportunity_board.models.notification import Notification, NotificationType
from opportunity_board.utils.email import compose_notification_email, is_email_enabled, send_email
from opportunity_board.utils.telegram import is_telegram_enabled, send_telegram_message

logger = logging.getLogger(__name__)

TELEGRAM_EMOJI_BY_TYPE = {
    NotificationType.FRIEND_REQUEST: "\U0001F465",
    NotificationType.NEW_OPPORTUNITY: "✨",
    NotificationType.DEADLINE_REMINDER: "⏰",
    NotificationType.APPLICATION_UPDATE: "\U0001F4DD",
    NotificationType.ORGANIZATION_UPDATE: "\U0001F3E2",
    NotificationType.NEW_MESSAGE: "\U0001F4AC",
}


def list_user_notifications(
    db: Session,
    *,
    user_id: int,
    unread_only: bool = False,
    limit: int = 50,
) -> List[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_notification_read(
    db: Session,
    *,
    user_id: int,
    notification_id: int,
) -> Optional[Notification]:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first()
    if not notification:
        return None
    notification.is_read = True
    db.commit()
    return notification


def mark_all_notifications_read(db: Session, *, user_id: int) -> int:
    updated = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    ).update({"is_read": True}, synchronize_session=False)
    db.commit()
    return int(updated)


def get_unread_count(db: Session, *, user_id: int) -> int:
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    ).count()


def create_notification(
    db: Session,
    *,
    user_id: int,
    type: NotificationType,
    message: str,
    related_entity_id: Optional[int] = None,
) -> Notification:
    """Stage a notification in the caller's transaction."""
    notification = Notification(
        user_id=user_id,
        type=type,
        message=message,
        related_entity_id=related_entity_id,
    )
    db.add(notification)
    db.flush()
    return notification


# ======================
# DELIVERY
# ======================

def _action_url(notification: Notification) -> str:
    base = settings.APP_URL.rstrip("/")
    related = notification.related_entity_id
    kind = NotificationType(notification.type)
    if kind == NotificationType.FRIEND_REQUEST:
        return f"{base}/friends"
    if kind in (NotificationType.NEW_OPPORTUNITY, NotificationType.DEADLINE_REMINDER):
        return f"{base}/opportunities/{related}" if related else f"{base}/opportunities"
    if kind == NotificationType.APPLICATION_UPDATE:
        return f"{base}/opportunities/{related}" if related else f"{base}/profile/applications"
    if kind == NotificationType.ORGANIZATION_UPDATE:
        return f"{base}/community/{related}" if related else f"{base}/community"
    if kind == NotificationType.NEW_MESSAGE:
        return f"{base}/messages/{related}" if related else f"{base}/messages"
    return base


def format_telegram_message(notification: Notification) -> str:
    emoji = TELEGRAM_EMOJI_BY_TYPE.get(NotificationType(notification.type), "\U0001F4E2")
    return (
        f"{emoji} <b>{html.escape(notification.message)}</b>\n\n"
        f"<a href=\"{_action_url(notification)}\">View in {html.escape(settings.APP_NAME)}</a>"
    )


def _send_notification_email(to_email: str, subject: str, body_text: str, *, notification_id: Optional[int], user_id: Optional[int]) -> None:
    """Send SMTP mail in a background thread so API latency stays low."""
    sent = send_email(
        to_email=to_email,
        subject=subject,
        body_text=body_text,
    )
    if not sent:
        logger.info(
            "Notification email not sent (user_id=%s, notification_id=%s)",
            user_id,
            notification_id,
        )


def _send_notification_telegram(chat_id: str, text: str, *, notification_id: Optional[int]) -> None:
    if not send_telegram_message(chat_id, text):
        logger.info("Telegram notification not delivered (notification_id=%s)", notification_id)


def dispatch_email_for_notification(db: Session, notification: Notification) -> bool:
    """
    Best-effort email delivery for a committed notification.
    This function never raises and should not impact request success.
    """
    try:
        if not is_email_enabled():
            return False

        recipient = db.query(User).filter(User.id == notification.user_id).first()
        if not recipient or not recipient.email:
            return False

        subject, body_text = compose_notification_email(
            first_name=recipient.first_name,
            notification_type=notification.type,
            message=notification.message,
            action_url=_action_url(notification),
        )

        worker = threading.Thread(
            target=_send_notification_email,
            args=(recipient.email, subject, body_text),
            kwargs={
                "notification_id": getattr(notification, "id", None),
                "user_id": notification.user_id,
            },
            daemon=True,
        )
        worker.start()
        return True
    except Exception as exc:
        logger.warning(
            "Notification email dispatch failed (notification_id=%s): %s",
            getattr(notification, "id", None),
            exc,
        )
        return False


def dispatch_telegram_for_notification(db: Session, notification: Notification) -> bool:
    """Best-effort Telegram delivery to the recipient's bound chat. Never raises."""
    try:
        if not is_telegram_enabled():
            return False

        recipient = db.query(User).filter(User.id == notification.user_id).first()
        if not recipient or not recipient.telegram_chat_id:
            return False

        worker = threading.Thread(
            target=_send_notification_telegram,
            args=(recipient.telegram_chat_id, format_telegram_message(notification)),
            kwargs={"notification_id": getattr(notification, "id", None)},
            daemon=True,
        )
        worker.start()
        return True
    except Exception as exc:
        logger.warning(
            "Notification Telegram dispatch failed (notification_id=%s): %s",
            getattr(notification, "id", None),
            exc,
        )
        return False


def deliver(db: Session, *notifications: Optional[Notification]) -> None:
    """Push committed notifications to the external channels."""
    for notification in notifications:
        if notification is None:
            continue
        dispatch_email_for_notification(db, notification)
        dispatch_telegram_for_notification(db, notification)
