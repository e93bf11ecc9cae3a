# opportunity_board/api/admin.py
"""
Admin endpoints: catalog management (organizations, categories,
opportunities), user management and platform analytics.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.database import get_db
from opportunity_board.models import User
from opportunity_board.schemas import (
    ActiveUpdate,
    CategoryCreate,
    CategoryUpdate,
    OpportunityCreate,
    OpportunityUpdate,
    OrganizationCreate,
    OrganizationUpdate,
    RoleUpdate,
)
from opportunity_board.services import catalog_service
from opportunity_board.utils.security import require_admin

router = APIRouter(prefix="/admin", tags=["Admin"])


# ─────────────────────────────────────────
# Organizations
# ─────────────────────────────────────────

@router.post("/organizations", status_code=201)
def create_organization(
    payload: OrganizationCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    organization = catalog_service.create_organization(db, payload.model_dump())
    return catalog_crud.serialize_organization(organization)


@router.put("/organizations/{organization_id}")
def update_organization(
    organization_id: int,
    payload: OrganizationUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    organization = catalog_service.update_organization(
        db, organization_id, payload.model_dump(exclude_unset=True)
    )
    return catalog_crud.serialize_organization(organization)


@router.delete("/organizations/{organization_id}")
def delete_organization(
    organization_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    catalog_service.delete_organization(db, organization_id)
    return {"message": "Organization deleted successfully"}


# ─────────────────────────────────────────
# Categories
# ─────────────────────────────────────────

@router.post("/categories", status_code=201)
def create_category(
    payload: CategoryCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = catalog_service.create_category(db, name=payload.name, description=payload.description)
    return catalog_service.serialize_category(category)


@router.put("/categories/{category_id}")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = catalog_service.update_category(db, category_id, payload.model_dump(exclude_unset=True))
    return catalog_service.serialize_category(category)


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    catalog_service.delete_category(db, category_id)
    return {"message": "Category deleted successfully"}


# ─────────────────────────────────────────
# Opportunities
# ─────────────────────────────────────────

@router.post("/opportunities", status_code=201)
def create_opportunity(
    payload: OpportunityCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    opportunity = catalog_service.create_opportunity(db, payload.model_dump())
    return catalog_crud.serialize_opportunity(opportunity)


@router.put("/opportunities/{opportunity_id}")
def update_opportunity(
    opportunity_id: int,
    payload: OpportunityUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    opportunity = catalog_service.update_opportunity(
        db, opportunity_id, payload.model_dump(exclude_unset=True)
    )
    return catalog_crud.serialize_opportunity(opportunity)


@router.delete("/opportunities/{opportunity_id}")
def delete_opportunity(
    opportunity_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    catalog_service.delete_opportunity(db, opportunity_id)
    return {"message": "Opportunity deleted successfully"}


# ─────────────────────────────────────────
# Users
# ─────────────────────────────────────────

@router.get("/users")
def get_all_users(
    search: Optional[str] = Query(None, description="Search by name or email"),
    is_active: Optional[bool] = Query(None, description="Filter by active/blocked"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    users = catalog_service.list_users(db, search=search, is_active=is_active, skip=skip, limit=limit)
    return [catalog_service.serialize_admin_user(u) for u in users]


@router.put("/users/{user_id}/role")
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = catalog_service.set_user_role(db, admin=admin, user_id=user_id, role=payload.role)
    return catalog_service.serialize_admin_user(user)


@router.put("/users/{user_id}/active")
def update_user_active(
    user_id: int,
    payload: ActiveUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = catalog_service.set_user_active(db, admin=admin, user_id=user_id, is_active=payload.is_active)
    return catalog_service.serialize_admin_user(user)


# ─────────────────────────────────────────
# Analytics
# ─────────────────────────────────────────

@router.get("/analytics")
def get_analytics(
    top: int = Query(5, ge=1, le=50),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return catalog_service.analytics(db, top=top)
