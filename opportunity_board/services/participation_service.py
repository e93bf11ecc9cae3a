import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.errors import ConflictError, ForbiddenError, NotFoundError
from opportunity_board.models import Participation, PrivacyLevel

logger = logging.getLogger(__name__)


def serialize_participation(participation: Participation) -> Dict[str, Any]:
    return {
        "id": participation.id,
        "user_id": participation.user_id,
        "opportunity_id": participation.opportunity_id,
        "year": participation.year,
        "privacy_level": PrivacyLevel(participation.privacy_level).value,
        "feedback": participation.feedback,
        "created_at": participation.created_at.isoformat() if participation.created_at else None,
    }


def create_participation(
    db: Session,
    *,
    user_id: int,
    opportunity_id: int,
    year: int,
    privacy_level: PrivacyLevel = PrivacyLevel.ONLY_ME,
    feedback: Optional[str] = None,
) -> Participation:
    if not catalog_crud.get_opportunity(db, opportunity_id):
        raise NotFoundError("Opportunity not found")

    existing = db.query(Participation.id).filter(
        Participation.user_id == user_id,
        Participation.opportunity_id == opportunity_id,
        Participation.year == year,
    ).first()
    if existing:
        raise ConflictError("Participation record already exists for this year")

    participation = Participation(
        user_id=user_id,
        opportunity_id=opportunity_id,
        year=year,
        privacy_level=PrivacyLevel(privacy_level),
        feedback=feedback,
    )
    try:
        db.add(participation)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Participation record already exists for this year")
    db.refresh(participation)
    return participation


def _owned_participation(db: Session, *, user_id: int, participation_id: int) -> Participation:
    participation = db.query(Participation).filter(Participation.id == participation_id).first()
    if not participation:
        raise NotFoundError("Participation not found")
    if participation.user_id != user_id:
        raise ForbiddenError("Only the owner can manage this participation")
    return participation


def update_privacy(
    db: Session,
    *,
    user_id: int,
    participation_id: int,
    privacy_level: PrivacyLevel,
) -> Participation:
    participation = _owned_participation(db, user_id=user_id, participation_id=participation_id)
    participation.privacy_level = PrivacyLevel(privacy_level)
    db.commit()
    db.refresh(participation)
    return participation


def get_privacy(db: Session, *, user_id: int, participation_id: int) -> Participation:
    return _owned_participation(db, user_id=user_id, participation_id=participation_id)
