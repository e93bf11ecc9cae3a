from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from opportunity_board.database import get_db
from opportunity_board.models import PrivacyLevel, User
from opportunity_board.schemas import ParticipationPrivacyUpdate
from opportunity_board.services import participation_service
from opportunity_board.utils.security import get_current_user

router = APIRouter(prefix="/participations", tags=["Participations"])


@router.get("/{participation_id}/privacy")
def get_participation_privacy(
    participation_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    participation = participation_service.get_privacy(
        db, user_id=current_user.id, participation_id=participation_id
    )
    return {"id": participation.id, "privacy_level": PrivacyLevel(participation.privacy_level).value}


@router.put("/{participation_id}/privacy")
def update_participation_privacy(
    participation_id: int,
    payload: ParticipationPrivacyUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    participation = participation_service.update_privacy(
        db,
        user_id=current_user.id,
        participation_id=participation_id,
        privacy_level=payload.privacy_level,
    )
    return participation_service.serialize_participation(participation)
