from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.database import get_db
from opportunity_board.models import User
from opportunity_board.schemas import FollowToggle
from opportunity_board.services import catalog_service, relationship_service
from opportunity_board.utils.security import get_current_user

router = APIRouter(prefix="/organizations", tags=["Organizations"])


@router.get("")
def list_organizations(
    q: Optional[str] = Query(None, description="Search by name"),
    db: Session = Depends(get_db),
):
    return [catalog_crud.serialize_organization(o) for o in catalog_crud.search_organizations(db, q)]


@router.get("/{organization_id}")
def get_organization(organization_id: int, db: Session = Depends(get_db)):
    return catalog_service.get_organization_detail(db, organization_id)


@router.post("/{organization_id}/follow")
def toggle_follow(
    organization_id: int,
    payload: FollowToggle,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return relationship_service.toggle_follow(
        db,
        user_id=current_user.id,
        organization_id=organization_id,
        follow=payload.following,
    )


@router.get("/{organization_id}/follow/status")
def get_follow_status(
    organization_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {
        "following": relationship_service.is_following(
            db,
            user_id=current_user.id,
            organization_id=organization_id,
        )
    }
