# opportunity_board/api/opportunities.py
"""
Public catalog reads plus the per-user actions on a single opportunity:
bookmarks, view counting, applications and participation records.
"""

import math
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.database import get_db
from opportunity_board.errors import NotFoundError
from opportunity_board.models import OpportunityStatus, User
from opportunity_board.schemas import (
    ApplicationConfirm,
    ApplyRequest,
    BookmarkToggle,
    ParticipationCreate,
)
from opportunity_board.services import (
    application_service,
    engagement_service,
    participation_service,
    privacy_service,
)
from opportunity_board.utils.security import get_current_user, get_optional_user

router = APIRouter(prefix="/opportunities", tags=["Opportunities"])


# ─────────────────────────────────────────
# Catalog
# ─────────────────────────────────────────

@router.get("")
def list_opportunities(
    category: Optional[int] = Query(None, description="Category id"),
    organization: Optional[int] = Query(None, description="Organization id"),
    status: Optional[OpportunityStatus] = Query(None),
    q: Optional[str] = Query(None, description="Search title and descriptions"),
    sort: Literal["latest", "deadline", "popular"] = Query("latest"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db),
):
    rows, total = catalog_crud.search_opportunities(
        db,
        category_id=category,
        organization_id=organization,
        status=status,
        q=q,
        sort=sort,
        page=page,
        limit=limit,
    )
    return {
        "opportunities": [catalog_crud.serialize_opportunity(o) for o in rows],
        "total_count": total,
        "page": page,
        "page_count": math.ceil(total / limit) if total else 0,
    }


@router.get("/{opportunity_id}")
def get_opportunity(
    opportunity_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Detail view. Reading it never counts as a view; see increment-view."""
    opportunity = catalog_crud.get_opportunity(db, opportunity_id)
    if not opportunity:
        raise NotFoundError("Opportunity not found")

    return {
        **catalog_crud.serialize_opportunity(opportunity),
        "is_bookmarked": engagement_service.is_bookmarked(
            db, user_id=viewer.id, opportunity_id=opportunity_id
        ) if viewer else False,
        # Listed to everyone, so only PUBLIC participations qualify.
        "participants": privacy_service.list_opportunity_participants(
            db, viewer_id=None, opportunity_id=opportunity_id
        ),
    }


# ─────────────────────────────────────────
# Bookmarks and views
# ─────────────────────────────────────────

@router.post("/{opportunity_id}/bookmark")
def toggle_bookmark(
    opportunity_id: int,
    payload: BookmarkToggle,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return engagement_service.toggle_bookmark(
        db,
        user_id=current_user.id,
        opportunity_id=opportunity_id,
        bookmarked=payload.bookmarked,
    )


@router.get("/{opportunity_id}/bookmark/status")
def get_bookmark_status(
    opportunity_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {
        "bookmarked": engagement_service.is_bookmarked(
            db, user_id=current_user.id, opportunity_id=opportunity_id
        )
    }


@router.get("/{opportunity_id}/check-view")
def check_view(
    opportunity_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return engagement_service.check_view(db, user_id=current_user.id, opportunity_id=opportunity_id)


@router.post("/{opportunity_id}/increment-view")
def increment_view(
    opportunity_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return engagement_service.register_view(db, user_id=current_user.id, opportunity_id=opportunity_id)


# ─────────────────────────────────────────
# Applications
# ─────────────────────────────────────────

@router.post("/{opportunity_id}/apply", status_code=201)
def apply(
    opportunity_id: int,
    payload: ApplyRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    application = application_service.apply(
        db,
        user_id=current_user.id,
        opportunity_id=opportunity_id,
        is_applied=payload.status.is_applied,
        is_confirm=payload.status.is_confirm,
        feedback=payload.feedback,
    )
    return application_service.serialize_application(application)


@router.get("/{opportunity_id}/application-status")
def get_application_status(
    opportunity_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    application = application_service.get_application(
        db, user_id=current_user.id, opportunity_id=opportunity_id
    )
    if not application:
        return {"status": None}
    return {
        "status": {
            "is_applied": bool(application.status.is_applied),
            "is_confirm": bool(application.status.is_confirm),
        }
    }


@router.put("/{opportunity_id}/application-status")
def confirm_application(
    opportunity_id: int,
    payload: ApplicationConfirm,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    application = application_service.confirm_application(
        db,
        user_id=current_user.id,
        opportunity_id=opportunity_id,
        is_applied=payload.is_applied,
    )
    return application_service.serialize_application(application)


# ─────────────────────────────────────────
# Participations
# ─────────────────────────────────────────

@router.post("/{opportunity_id}/participation", status_code=201)
def create_participation(
    opportunity_id: int,
    payload: ParticipationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    participation = participation_service.create_participation(
        db,
        user_id=current_user.id,
        opportunity_id=opportunity_id,
        year=payload.year,
        privacy_level=payload.privacy_level,
        feedback=payload.feedback,
    )
    return participation_service.serialize_participation(participation)


@router.get("/{opportunity_id}/participants")
def list_participants(
    opportunity_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    if not catalog_crud.get_opportunity(db, opportunity_id):
        raise NotFoundError("Opportunity not found")
    return privacy_service.list_opportunity_participants(
        db,
        viewer_id=viewer.id if viewer else None,
        opportunity_id=opportunity_id,
    )
