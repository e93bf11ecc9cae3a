from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from opportunity_board.database import get_db
from opportunity_board.models import User
from opportunity_board.services import application_service
from opportunity_board.utils.security import get_current_user

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.get("")
def list_my_applications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [
        application_service.serialize_application(a)
        for a in application_service.list_applications(db, user_id=current_user.id)
    ]


@router.get("/unconfirmed")
def list_unconfirmed_applications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Applications old enough that the user should confirm whether they finished applying."""
    return [
        application_service.serialize_application(a)
        for a in application_service.list_unconfirmed(db, user_id=current_user.id)
    ]
