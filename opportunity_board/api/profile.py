from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from opportunity_board.config import settings
from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.database import get_db
from opportunity_board.models import User
from opportunity_board.services import engagement_service
from opportunity_board.utils.security import get_current_user

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("/bookmarks")
def list_my_bookmarks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    opportunities = engagement_service.list_bookmarked_opportunities(db, user_id=current_user.id)
    return [catalog_crud.serialize_opportunity(o) for o in opportunities]


@router.get("/viewed-opportunities")
def list_viewed_opportunities(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return engagement_service.list_view_history(
        db,
        user_id=current_user.id,
        page=page,
        limit=limit or settings.VIEW_HISTORY_PAGE_SIZE,
    )
