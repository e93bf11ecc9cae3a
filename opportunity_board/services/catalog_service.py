# opportunity_board/services/catalog_service.py
"""
Catalog administration
Organization, category and opportunity management plus the admin views
over users and platform analytics.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.errors import ConflictError, NotFoundError, ValidationError
from opportunity_board.models import (
    Application,
    Bookmark,
    Category,
    EventLog,
    Follow,
    NotificationType,
    Opportunity,
    Organization,
    User,
)
from opportunity_board.services import notification_service, relationship_service

logger = logging.getLogger(__name__)

USER_ROLES = {"user", "admin"}


def _apply_fields(instance, data: Dict[str, Any]) -> None:
    for key, value in data.items():
        setattr(instance, key, value)


# ======================
# ORGANIZATIONS
# ======================

def get_organization_detail(db: Session, organization_id: int) -> Dict[str, Any]:
    organization = catalog_crud.get_organization(db, organization_id)
    if not organization:
        raise NotFoundError("Organization not found")

    followers = db.query(Follow.id).filter(Follow.organization_id == organization_id).count()
    opportunities = (
        db.query(Opportunity)
        .filter(Opportunity.organization_id == organization_id)
        .order_by(Opportunity.deadline.asc(), Opportunity.id.asc())
        .all()
    )
    return {
        **catalog_crud.serialize_organization(organization),
        "followers_count": followers,
        "opportunities": [catalog_crud.serialize_opportunity(o) for o in opportunities],
    }


def create_organization(db: Session, data: Dict[str, Any]) -> Organization:
    if db.query(Organization.id).filter(Organization.name == data["name"]).first():
        raise ConflictError("Organization with this name already exists")
    organization = Organization(**data)
    db.add(organization)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Organization with this name already exists")
    db.refresh(organization)
    return organization


def update_organization(db: Session, organization_id: int, data: Dict[str, Any]) -> Organization:
    organization = catalog_crud.get_organization(db, organization_id)
    if not organization:
        raise NotFoundError("Organization not found")

    name = data.get("name")
    if name and name != organization.name:
        clash = db.query(Organization.id).filter(
            Organization.name == name,
            Organization.id != organization_id,
        ).first()
        if clash:
            raise ConflictError("Organization with this name already exists")

    _apply_fields(organization, data)
    db.commit()
    db.refresh(organization)
    return organization


def delete_organization(db: Session, organization_id: int) -> None:
    organization = catalog_crud.get_organization(db, organization_id)
    if not organization:
        raise NotFoundError("Organization not found")

    in_use = db.query(Opportunity.id).filter(Opportunity.organization_id == organization_id).count()
    if in_use:
        raise ConflictError(
            f"Cannot delete organization: it has {in_use} opportunities",
            extra={"count": in_use},
        )

    db.delete(organization)
    db.commit()
    logger.info("Deleted organization %s", organization_id)


# ======================
# CATEGORIES
# ======================

def list_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.name.asc()).all()


def create_category(db: Session, *, name: str, description: Optional[str] = None) -> Category:
    name = name.strip()
    if not name:
        raise ValidationError("Category name is required")
    if db.query(Category.id).filter(Category.name == name).first():
        raise ConflictError("A category with this name already exists")
    category = Category(name=name, description=description)
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A category with this name already exists")
    db.refresh(category)
    return category


def update_category(db: Session, category_id: int, data: Dict[str, Any]) -> Category:
    category = catalog_crud.get_category(db, category_id)
    if not category:
        raise NotFoundError("Category not found")

    name = data.get("name")
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Category name is required")
        clash = db.query(Category.id).filter(Category.name == name, Category.id != category_id).first()
        if clash:
            raise ConflictError("A category with this name already exists")
        data = {**data, "name": name}

    _apply_fields(category, data)
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int) -> None:
    category = catalog_crud.get_category(db, category_id)
    if not category:
        raise NotFoundError("Category not found")

    in_use = db.query(Opportunity.id).filter(Opportunity.category_id == category_id).count()
    if in_use:
        raise ConflictError(
            f"Cannot delete category: it is used by {in_use} opportunities",
            extra={"count": in_use},
        )

    db.delete(category)
    db.commit()


def serialize_category(category: Category, db: Optional[Session] = None) -> Dict[str, Any]:
    data = {
        "id": category.id,
        "name": category.name,
        "description": category.description,
    }
    if db is not None:
        data["opportunities_count"] = (
            db.query(Opportunity.id).filter(Opportunity.category_id == category.id).count()
        )
    return data


# ======================
# OPPORTUNITIES
# ======================

def _check_references(db: Session, data: Dict[str, Any]) -> None:
    if "category_id" in data and not catalog_crud.get_category(db, data["category_id"]):
        raise NotFoundError("Category not found")
    if "organization_id" in data and not catalog_crud.get_organization(db, data["organization_id"]):
        raise NotFoundError("Organization not found")


def _check_dates(start_date, deadline, end_date) -> None:
    if start_date and deadline and deadline < start_date:
        raise ValidationError("Deadline cannot be before the start date")
    if end_date and deadline and end_date < deadline:
        raise ValidationError("End date cannot be before the deadline")


def create_opportunity(db: Session, data: Dict[str, Any]) -> Opportunity:
    """Create an opportunity and tell the organization's followers about it."""
    _check_references(db, data)
    _check_dates(data.get("start_date"), data.get("deadline"), data.get("end_date"))

    opportunity = Opportunity(**data)
    db.add(opportunity)
    db.flush()

    organization = catalog_crud.get_organization(db, opportunity.organization_id)
    notifications = [
        notification_service.create_notification(
            db,
            user_id=user_id,
            type=NotificationType.NEW_OPPORTUNITY,
            message=f"{organization.name} posted a new opportunity: {opportunity.title}",
            related_entity_id=opportunity.id,
        )
        for user_id in relationship_service.follower_ids(db, organization_id=organization.id)
    ]
    db.commit()
    db.refresh(opportunity)

    notification_service.deliver(db, *notifications)
    logger.info(
        "Created opportunity %s (organization_id=%s, followers_notified=%s)",
        opportunity.id,
        organization.id,
        len(notifications),
    )
    return opportunity


def update_opportunity(db: Session, opportunity_id: int, data: Dict[str, Any]) -> Opportunity:
    opportunity = catalog_crud.get_opportunity(db, opportunity_id)
    if not opportunity:
        raise NotFoundError("Opportunity not found")

    _check_references(db, data)
    _check_dates(
        data.get("start_date", opportunity.start_date),
        data.get("deadline", opportunity.deadline),
        data.get("end_date", opportunity.end_date),
    )
    _apply_fields(opportunity, data)
    db.commit()
    db.refresh(opportunity)
    return opportunity


def delete_opportunity(db: Session, opportunity_id: int) -> None:
    opportunity = catalog_crud.get_opportunity(db, opportunity_id)
    if not opportunity:
        raise NotFoundError("Opportunity not found")
    db.delete(opportunity)
    db.commit()
    logger.info("Deleted opportunity %s", opportunity_id)


# ======================
# USERS (ADMIN)
# ======================

def serialize_admin_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": user.role,
        "is_active": bool(user.is_active),
        "two_factor_enabled": bool(user.two_factor_enabled),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def list_users(
    db: Session,
    *,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[User]:
    query = db.query(User)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(
            User.first_name.ilike(like) | User.last_name.ilike(like) | User.email.ilike(like)
        )
    if is_active is not None:
        query = query.filter(User.is_active.is_(is_active))
    return query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()


def _target_user(db: Session, *, admin: User, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if user.id == admin.id:
        raise ValidationError("Admins cannot change their own account here")
    return user


def set_user_role(db: Session, *, admin: User, user_id: int, role: str) -> User:
    role = (role or "").strip().lower()
    if role not in USER_ROLES:
        raise ValidationError("Role must be one of: admin, user")
    user = _target_user(db, admin=admin, user_id=user_id)
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info("Admin %s set role of user %s to %s", admin.id, user.id, role)
    return user


def set_user_active(db: Session, *, admin: User, user_id: int, is_active: bool) -> User:
    user = _target_user(db, admin=admin, user_id=user_id)
    user.is_active = bool(is_active)
    db.commit()
    db.refresh(user)
    logger.info("Admin %s set is_active=%s on user %s", admin.id, user.is_active, user.id)
    return user


def analytics(db: Session, *, top: int = 5) -> Dict[str, Any]:
    top_viewed = (
        db.query(Opportunity)
        .order_by(Opportunity.visit_count.desc(), Opportunity.id.asc())
        .limit(top)
        .all()
    )
    events = (
        db.query(EventLog.event_type, func.count(EventLog.id))
        .group_by(EventLog.event_type)
        .all()
    )
    return {
        "users": {
            "total": db.query(User).count(),
            "active": db.query(User).filter(User.is_active.is_(True)).count(),
        },
        "opportunities": db.query(Opportunity).count(),
        "organizations": db.query(Organization).count(),
        "applications": db.query(Application).count(),
        "bookmarks": db.query(Bookmark).count(),
        "follows": db.query(Follow).count(),
        "top_viewed": [
            {"id": o.id, "title": o.title, "visit_count": o.visit_count or 0}
            for o in top_viewed
        ],
        "events": {event_type: count for event_type, count in events},
    }
