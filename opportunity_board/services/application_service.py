# opportunity_board/services/application_service.py
"""
Application Tracker
Records that a user went to an opportunity's external application flow,
and later whether they confirmed completing it.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from opportunity_board.config import settings
from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.errors import ConflictError, NotFoundError
from opportunity_board.models import Application, ApplicationStatusType, NotificationType
from opportunity_board.services import engagement_service, notification_service
from opportunity_board.utils.clock import utcnow

logger = logging.getLogger(__name__)

APPLICATION_SUBMIT_EVENT = "application_submit"


def get_application(db: Session, *, user_id: int, opportunity_id: int) -> Optional[Application]:
    return db.query(Application).filter(
        Application.user_id == user_id,
        Application.opportunity_id == opportunity_id,
    ).first()


def serialize_application(application: Application) -> Dict[str, Any]:
    status = application.status
    opportunity = application.opportunity
    return {
        "id": application.id,
        "opportunity_id": application.opportunity_id,
        "feedback": application.feedback,
        "status": {
            "id": status.id,
            "is_applied": bool(status.is_applied),
            "is_confirm": bool(status.is_confirm),
        } if status else None,
        "opportunity": {"id": opportunity.id, "title": opportunity.title} if opportunity else None,
        "created_at": application.created_at.isoformat() if application.created_at else None,
    }


def apply(
    db: Session,
    *,
    user_id: int,
    opportunity_id: int,
    is_applied: bool = False,
    is_confirm: bool = False,
    feedback: Optional[str] = None,
) -> Application:
    opportunity = catalog_crud.get_opportunity(db, opportunity_id)
    if not opportunity:
        raise NotFoundError("Opportunity not found")

    if get_application(db, user_id=user_id, opportunity_id=opportunity_id):
        raise ConflictError("Application already exists for this opportunity")

    try:
        status = ApplicationStatusType(is_applied=is_applied, is_confirm=is_confirm)
        db.add(status)
        db.flush()

        application = Application(
            user_id=user_id,
            opportunity_id=opportunity_id,
            status_id=status.id,
            feedback=feedback,
        )
        db.add(application)
        db.flush()

        engagement_service.track_event(
            db,
            event_type=APPLICATION_SUBMIT_EVENT,
            user_id=user_id,
            entity_type=engagement_service.OPPORTUNITY_ENTITY,
            entity_id=opportunity_id,
        )
        db.commit()
    except IntegrityError:
        # A concurrent apply won the unique (user, opportunity) constraint.
        db.rollback()
        raise ConflictError("Application already exists for this opportunity")

    db.refresh(application)
    logger.info("Application %s created (user_id=%s, opportunity_id=%s)", application.id, user_id, opportunity_id)
    return application


def confirm_application(
    db: Session,
    *,
    user_id: int,
    opportunity_id: int,
    is_applied: bool,
) -> Application:
    """Resolve the 'did you finish applying?' prompt on the existing status row."""
    application = get_application(db, user_id=user_id, opportunity_id=opportunity_id)
    if not application:
        raise NotFoundError("Application not found")

    application.status.is_applied = bool(is_applied)
    application.status.is_confirm = True

    title = application.opportunity.title if application.opportunity else "this opportunity"
    if is_applied:
        message = f"You confirmed your application for {title}"
    else:
        message = f"You marked {title} as not applied"
    notification = notification_service.create_notification(
        db,
        user_id=user_id,
        type=NotificationType.APPLICATION_UPDATE,
        message=message,
        related_entity_id=opportunity_id,
    )
    db.commit()
    db.refresh(application)
    notification_service.deliver(db, notification)
    return application


def list_applications(db: Session, *, user_id: int) -> List[Application]:
    return (
        db.query(Application)
        .filter(Application.user_id == user_id)
        .order_by(Application.created_at.desc(), Application.id.desc())
        .all()
    )


def list_unconfirmed(
    db: Session,
    *,
    user_id: int,
    grace_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[Application]:
    """
    Applications still awaiting confirmation once they are older than the
    grace window. Computed on every call; there is no background sweep.
    """
    if grace_minutes is None:
        grace_minutes = settings.UNCONFIRMED_APPLICATION_GRACE_MINUTES
    cutoff = (now or utcnow()) - timedelta(minutes=grace_minutes)
    return (
        db.query(Application)
        .join(ApplicationStatusType, Application.status_id == ApplicationStatusType.id)
        .filter(
            Application.user_id == user_id,
            ApplicationStatusType.is_confirm.is_(False),
            Application.created_at <= cutoff,
        )
        .order_by(Application.created_at.asc(), Application.id.asc())
        .all()
    )
