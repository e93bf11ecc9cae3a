"""
Periodic catalog upkeep, triggered by an external scheduler through the
cron endpoints. Nothing here runs on its own.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from opportunity_board.config import settings
from opportunity_board.models import (
    Bookmark,
    Notification,
    NotificationType,
    Opportunity,
    OpportunityStatus,
)
from opportunity_board.services import notification_service
from opportunity_board.utils.clock import utcnow

logger = logging.getLogger(__name__)

OPEN_STATUSES = (OpportunityStatus.ACTIVE, OpportunityStatus.CLOSING_SOON)
REMINDER_COOLDOWN = timedelta(hours=24)


def update_opportunities(db: Session, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Advance statuses along the opportunity lifecycle and refresh the popular/new flags."""
    now = now or utcnow()
    closing_cutoff = now + timedelta(days=settings.CLOSING_SOON_DAYS)
    new_cutoff = now - timedelta(days=settings.NEW_OPPORTUNITY_DAYS)

    active = db.query(Opportunity).filter(
        Opportunity.status == OpportunityStatus.OPENING_SOON,
        Opportunity.start_date <= now,
    ).update({Opportunity.status: OpportunityStatus.ACTIVE}, synchronize_session=False)

    closing_soon = db.query(Opportunity).filter(
        Opportunity.status == OpportunityStatus.ACTIVE,
        Opportunity.deadline > now,
        Opportunity.deadline <= closing_cutoff,
    ).update({Opportunity.status: OpportunityStatus.CLOSING_SOON}, synchronize_session=False)

    closed = db.query(Opportunity).filter(
        Opportunity.status.in_(OPEN_STATUSES),
        Opportunity.deadline <= now,
    ).update({Opportunity.status: OpportunityStatus.CLOSED}, synchronize_session=False)

    popular = db.query(Opportunity).filter(
        Opportunity.visit_count >= settings.POPULAR_VISIT_THRESHOLD,
        Opportunity.is_popular.is_(False),
    ).update({Opportunity.is_popular: True}, synchronize_session=False)

    not_new = db.query(Opportunity).filter(
        Opportunity.created_at < new_cutoff,
        Opportunity.is_new.is_(True),
    ).update({Opportunity.is_new: False}, synchronize_session=False)

    db.commit()

    updated = {
        "active": active,
        "closing_soon": closing_soon,
        "closed": closed,
        "popular": popular,
        "not_new": not_new,
    }
    logger.info("Opportunity maintenance: %s", updated)
    return {"success": True, "updated": updated, "timestamp": now.isoformat()}


def check_deadlines(db: Session, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Remind users about bookmarked opportunities closing between the start of
    today and the end of tomorrow. A user gets at most one reminder per
    opportunity in any 24 hour window.
    """
    now = now or utcnow()
    window_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    window_end = window_start + timedelta(days=2) - timedelta(microseconds=1)

    bookmarks = (
        db.query(Bookmark)
        .join(Opportunity, Bookmark.opportunity_id == Opportunity.id)
        .filter(
            Opportunity.deadline >= window_start,
            Opportunity.deadline <= window_end,
            Opportunity.status.in_(OPEN_STATUSES),
        )
        .order_by(Bookmark.id.asc())
        .all()
    )

    created = []
    for bookmark in bookmarks:
        opportunity = bookmark.opportunity
        already_reminded = db.query(Notification.id).filter(
            Notification.user_id == bookmark.user_id,
            Notification.related_entity_id == opportunity.id,
            Notification.type == NotificationType.DEADLINE_REMINDER,
            Notification.created_at >= now - REMINDER_COOLDOWN,
        ).first()
        if already_reminded:
            continue

        if opportunity.deadline - now <= timedelta(hours=24):
            message = f'URGENT: Less than 24 hours left to apply for "{opportunity.title}"'
        else:
            message = f'Reminder: Deadline approaching for "{opportunity.title}"'

        created.append(notification_service.create_notification(
            db,
            user_id=bookmark.user_id,
            type=NotificationType.DEADLINE_REMINDER,
            message=message,
            related_entity_id=opportunity.id,
        ))

    db.commit()
    notification_service.deliver(db, *created)

    logger.info(
        "Deadline check: %s bookmarks in window, %s reminders created",
        len(bookmarks),
        len(created),
    )
    return {
        "success": True,
        "bookmarked_opportunities": len(bookmarks),
        "notifications_created": len(created),
        "notifications": [
            {
                "id": n.id,
                "user_id": n.user_id,
                "opportunity_id": n.related_entity_id,
                "message": n.message,
            }
            for n in created
        ],
    }
