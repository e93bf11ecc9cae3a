# opportunity_board/services/engagement_service.py
"""
Engagement Tracker
Bookmarks, view counting and the EventLog-backed view history.
"""

import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.crud.common import insert_ignore
from opportunity_board.errors import NotFoundError, ValidationError
from opportunity_board.models import Bookmark, EventLog, Opportunity, OpportunityView

logger = logging.getLogger(__name__)

OPPORTUNITY_ENTITY = "opportunity"
OPPORTUNITY_VIEW_EVENT = "opportunity_view"
BOOKMARK_ADD_EVENT = "bookmark_add"


def track_event(
    db: Session,
    *,
    event_type: str,
    user_id: Optional[int] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> EventLog:
    """Append an event to the caller's transaction."""
    event = EventLog(
        user_id=user_id,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        event_type=event_type,
        event_metadata=metadata,
    )
    db.add(event)
    db.flush()
    return event


def _require_opportunity(db: Session, opportunity_id: int) -> Opportunity:
    opportunity = catalog_crud.get_opportunity(db, opportunity_id)
    if not opportunity:
        raise NotFoundError("Opportunity not found")
    return opportunity


# ======================
# BOOKMARKS
# ======================

def toggle_bookmark(
    db: Session,
    *,
    user_id: int,
    opportunity_id: int,
    bookmarked: bool,
) -> Dict[str, Any]:
    _require_opportunity(db, opportunity_id)

    if bookmarked:
        created = insert_ignore(
            db,
            Bookmark,
            conflict_columns=("user_id", "opportunity_id"),
            user_id=user_id,
            opportunity_id=opportunity_id,
        )
        if created:
            track_event(
                db,
                event_type=BOOKMARK_ADD_EVENT,
                user_id=user_id,
                entity_type=OPPORTUNITY_ENTITY,
                entity_id=opportunity_id,
            )
        message = "Opportunity bookmarked successfully"
    else:
        db.query(Bookmark).filter(
            Bookmark.user_id == user_id,
            Bookmark.opportunity_id == opportunity_id,
        ).delete(synchronize_session=False)
        message = "Opportunity removed from bookmarks"

    db.commit()
    return {"bookmarked": bool(bookmarked), "message": message}


def is_bookmarked(db: Session, *, user_id: int, opportunity_id: int) -> bool:
    return db.query(Bookmark.id).filter(
        Bookmark.user_id == user_id,
        Bookmark.opportunity_id == opportunity_id,
    ).first() is not None


def list_bookmarked_opportunities(db: Session, *, user_id: int) -> List[Opportunity]:
    return (
        db.query(Opportunity)
        .join(Bookmark, Bookmark.opportunity_id == Opportunity.id)
        .filter(Bookmark.user_id == user_id)
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        .all()
    )


# ======================
# VIEWS
# ======================

def check_view(db: Session, *, user_id: int, opportunity_id: int) -> Dict[str, Any]:
    existing = (
        db.query(EventLog)
        .filter(
            EventLog.user_id == user_id,
            EventLog.entity_type == OPPORTUNITY_ENTITY,
            EventLog.entity_id == str(opportunity_id),
            EventLog.event_type == OPPORTUNITY_VIEW_EVENT,
        )
        .order_by(EventLog.created_at.asc(), EventLog.id.asc())
        .first()
    )
    return {
        "has_viewed": existing is not None,
        "viewed_at": existing.created_at.isoformat() if existing and existing.created_at else None,
    }


def register_view(db: Session, *, user_id: int, opportunity_id: int) -> Dict[str, Any]:
    """
    Count one view per (user, opportunity).

    The unique OpportunityView marker decides whether this call counts; the
    counter bump and the history entry ride in the same transaction as the
    marker insert, so repeated or concurrent calls cannot double count.
    """
    _require_opportunity(db, opportunity_id)

    counted = insert_ignore(
        db,
        OpportunityView,
        conflict_columns=("user_id", "opportunity_id"),
        user_id=user_id,
        opportunity_id=opportunity_id,
    )
    if counted:
        db.query(Opportunity).filter(Opportunity.id == opportunity_id).update(
            {Opportunity.visit_count: Opportunity.visit_count + 1},
            synchronize_session=False,
        )
        track_event(
            db,
            event_type=OPPORTUNITY_VIEW_EVENT,
            user_id=user_id,
            entity_type=OPPORTUNITY_ENTITY,
            entity_id=opportunity_id,
        )
    db.commit()

    if not counted:
        logger.debug("Repeat view ignored (user_id=%s, opportunity_id=%s)", user_id, opportunity_id)
    return {
        "message": "View count incremented successfully" if counted else "View already counted",
        "counted": counted,
    }


def list_view_history(
    db: Session,
    *,
    user_id: int,
    page: int = 1,
    limit: int = 10,
) -> Dict[str, Any]:
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")

    base = db.query(EventLog).filter(
        EventLog.user_id == user_id,
        EventLog.event_type == OPPORTUNITY_VIEW_EVENT,
        EventLog.entity_type == OPPORTUNITY_ENTITY,
    )
    total_count = base.count()
    logs = (
        base.order_by(EventLog.created_at.desc(), EventLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    ids = [int(log.entity_id) for log in logs if log.entity_id and log.entity_id.isdigit()]
    opportunities = {
        o.id: o for o in db.query(Opportunity).filter(Opportunity.id.in_(ids)).all()
    } if ids else {}

    items = []
    for log in logs:
        if not log.entity_id or not log.entity_id.isdigit():
            continue
        opportunity = opportunities.get(int(log.entity_id))
        # Opportunities deleted since the view drop out of the history.
        if opportunity is None:
            continue
        items.append({
            "id": opportunity.id,
            "title": opportunity.title,
            "viewed_at": log.created_at.isoformat() if log.created_at else None,
            "organization": {
                "id": opportunity.organization.id,
                "name": opportunity.organization.name,
                "logo": opportunity.organization.logo,
            } if opportunity.organization else None,
            "category": {
                "id": opportunity.category.id,
                "name": opportunity.category.name,
            } if opportunity.category else None,
        })

    return {
        "opportunities": items,
        "total_count": total_count,
        "page_count": math.ceil(total_count / limit) if total_count else 0,
        "page": page,
    }
