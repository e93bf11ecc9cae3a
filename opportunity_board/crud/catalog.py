from typing import Optional, Tuple, List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from opportunity_board.models import Category, Opportunity, OpportunityStatus, Organization

SORT_ORDERS = {
    "latest": (Opportunity.created_at.desc(), Opportunity.id.desc()),
    "deadline": (Opportunity.deadline.asc(), Opportunity.id.asc()),
    "popular": (Opportunity.visit_count.desc(), Opportunity.id.desc()),
}


def get_opportunity(db: Session, opportunity_id: int) -> Optional[Opportunity]:
    return db.query(Opportunity).filter(Opportunity.id == opportunity_id).first()


def get_organization(db: Session, organization_id: int) -> Optional[Organization]:
    return db.query(Organization).filter(Organization.id == organization_id).first()


def get_category(db: Session, category_id: int) -> Optional[Category]:
    return db.query(Category).filter(Category.id == category_id).first()


def search_opportunities(
    db: Session,
    *,
    category_id: Optional[int] = None,
    organization_id: Optional[int] = None,
    status: Optional[OpportunityStatus] = None,
    q: Optional[str] = None,
    sort: str = "latest",
    page: int = 1,
    limit: int = 12,
) -> Tuple[List[Opportunity], int]:
    query = db.query(Opportunity)
    if category_id is not None:
        query = query.filter(Opportunity.category_id == category_id)
    if organization_id is not None:
        query = query.filter(Opportunity.organization_id == organization_id)
    if status is not None:
        query = query.filter(Opportunity.status == status)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(
            or_(
                Opportunity.title.ilike(like),
                Opportunity.description.ilike(like),
                Opportunity.short_description.ilike(like),
            )
        )

    total = query.count()
    rows = (
        query.order_by(*SORT_ORDERS.get(sort, SORT_ORDERS["latest"]))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def search_organizations(db: Session, q: Optional[str] = None) -> List[Organization]:
    query = db.query(Organization)
    if q:
        query = query.filter(Organization.name.ilike(f"%{q.strip()}%"))
    return query.order_by(Organization.name.asc()).all()


def serialize_opportunity(opportunity: Opportunity) -> dict:
    organization = opportunity.organization
    category = opportunity.category
    return {
        "id": opportunity.id,
        "title": opportunity.title,
        "description": opportunity.description,
        "short_description": opportunity.short_description,
        "eligibility": opportunity.eligibility,
        "application_process": opportunity.application_process,
        "external_link": opportunity.external_link,
        "start_date": opportunity.start_date.isoformat() if opportunity.start_date else None,
        "deadline": opportunity.deadline.isoformat() if opportunity.deadline else None,
        "end_date": opportunity.end_date.isoformat() if opportunity.end_date else None,
        "status": OpportunityStatus(opportunity.status).value,
        "visit_count": opportunity.visit_count or 0,
        "is_popular": bool(opportunity.is_popular),
        "is_new": bool(opportunity.is_new),
        "organization": {
            "id": organization.id,
            "name": organization.name,
            "logo": organization.logo,
        } if organization else None,
        "category": {"id": category.id, "name": category.name} if category else None,
        "created_at": opportunity.created_at.isoformat() if opportunity.created_at else None,
    }


def serialize_organization(organization: Organization) -> dict:
    return {
        "id": organization.id,
        "name": organization.name,
        "description": organization.description,
        "logo": organization.logo,
        "website": organization.website,
        "created_at": organization.created_at.isoformat() if organization.created_at else None,
    }
