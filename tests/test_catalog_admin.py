from __future__ import annotations

from datetime import timedelta

import pytest

from opportunity_board.api.admin import (
    create_category,
    create_opportunity,
    delete_category,
    delete_organization,
    get_analytics,
    update_category,
    update_user_active,
    update_user_role,
)
from opportunity_board.api.opportunities import list_opportunities
from opportunity_board.api.organizations import get_organization, toggle_follow
from opportunity_board.errors import ConflictError, NotFoundError, ValidationError
from opportunity_board.models import Category, Notification, NotificationType, Organization
from opportunity_board.schemas import (
    ActiveUpdate,
    CategoryCreate,
    CategoryUpdate,
    FollowToggle,
    OpportunityCreate,
    RoleUpdate,
)
from opportunity_board.utils.clock import utcnow


@pytest.fixture
def admin(make_user):
    return make_user("Admin", role="admin")


def test_category_in_use_cannot_be_deleted(db_session, admin, make_category, make_opportunity):
    category = make_category("Scholarships")
    for _ in range(3):
        make_opportunity(category=category)

    with pytest.raises(ConflictError) as exc_info:
        delete_category(category_id=category.id, admin=admin, db=db_session)

    assert exc_info.value.status_code == 409
    assert exc_info.value.to_payload()["count"] == 3
    assert db_session.query(Category).filter(Category.id == category.id).count() == 1


def test_unused_category_is_deleted(db_session, admin, make_category):
    category = make_category()
    delete_category(category_id=category.id, admin=admin, db=db_session)
    assert db_session.query(Category).count() == 0


def test_category_name_must_be_unique(db_session, admin, make_category):
    make_category("Jobs")
    internships = make_category("Internships")

    with pytest.raises(ConflictError):
        create_category(CategoryCreate(name="Jobs"), admin=admin, db=db_session)
    with pytest.raises(ConflictError):
        update_category(internships.id, CategoryUpdate(name="Jobs"), admin=admin, db=db_session)


def test_organization_with_opportunities_cannot_be_deleted(db_session, admin, make_organization, make_opportunity):
    organization = make_organization()
    make_opportunity(organization=organization)
    make_opportunity(organization=organization)

    with pytest.raises(ConflictError) as exc_info:
        delete_organization(organization_id=organization.id, admin=admin, db=db_session)

    assert exc_info.value.extra == {"count": 2}
    assert db_session.query(Organization).count() == 1


def test_new_opportunity_notifies_followers(db_session, admin, make_user, make_organization, make_category):
    organization = make_organization("Green Futures")
    category = make_category()
    follower = make_user("Fan")
    bystander = make_user("Bystander")
    toggle_follow(organization_id=organization.id, payload=FollowToggle(following=True), current_user=follower, db=db_session)

    created = create_opportunity(
        OpportunityCreate(
            title="Climate Fellowship",
            description="Twelve month fellowship",
            category_id=category.id,
            organization_id=organization.id,
            deadline=utcnow() + timedelta(days=20),
        ),
        admin=admin,
        db=db_session,
    )

    notes = db_session.query(Notification).filter(Notification.type == NotificationType.NEW_OPPORTUNITY).all()
    assert [(n.user_id, n.related_entity_id) for n in notes] == [(follower.id, created["id"])]
    assert "Climate Fellowship" in notes[0].message
    assert db_session.query(Notification).filter(Notification.user_id == bystander.id).count() == 0

    detail = get_organization(organization_id=organization.id, db=db_session)
    assert detail["followers_count"] == 1
    assert [o["title"] for o in detail["opportunities"]] == ["Climate Fellowship"]


def test_create_opportunity_validates_references_and_dates(db_session, admin, make_organization, make_category):
    organization = make_organization()
    category = make_category()
    now = utcnow()

    with pytest.raises(NotFoundError):
        create_opportunity(
            OpportunityCreate(title="X", description="Y", category_id=999, organization_id=organization.id, deadline=now),
            admin=admin,
            db=db_session,
        )
    with pytest.raises(ValidationError):
        create_opportunity(
            OpportunityCreate(
                title="X",
                description="Y",
                category_id=category.id,
                organization_id=organization.id,
                start_date=now,
                deadline=now - timedelta(days=1),
            ),
            admin=admin,
            db=db_session,
        )


def test_listing_filters_and_sorts(db_session, make_opportunity, make_category):
    grants = make_category("Grants")
    soon = make_opportunity("Soon", category=grants, deadline=utcnow() + timedelta(days=2), visit_count=5)
    later = make_opportunity("Later", category=grants, deadline=utcnow() + timedelta(days=40), visit_count=50)
    make_opportunity("Elsewhere")

    by_deadline = list_opportunities(
        category=grants.id, organization=None, status=None, q=None,
        sort="deadline", page=1, limit=12, db=db_session,
    )
    assert [o["id"] for o in by_deadline["opportunities"]] == [soon.id, later.id]
    assert by_deadline["total_count"] == 2

    popular = list_opportunities(
        category=None, organization=None, status=None, q="later",
        sort="popular", page=1, limit=12, db=db_session,
    )
    assert [o["id"] for o in popular["opportunities"]] == [later.id]


def test_admin_user_management(db_session, admin, make_user):
    member = make_user("Member")

    promoted = update_user_role(member.id, RoleUpdate(role="ADMIN"), admin=admin, db=db_session)
    assert promoted["role"] == "admin"

    disabled = update_user_active(member.id, ActiveUpdate(is_active=False), admin=admin, db=db_session)
    assert disabled["is_active"] is False

    with pytest.raises(ValidationError):
        update_user_role(member.id, RoleUpdate(role="owner"), admin=admin, db=db_session)
    with pytest.raises(ValidationError):
        update_user_active(admin.id, ActiveUpdate(is_active=False), admin=admin, db=db_session)


def test_analytics_counts(db_session, admin, make_opportunity):
    make_opportunity("Most viewed", visit_count=10)
    make_opportunity("Less viewed", visit_count=1)

    stats = get_analytics(top=1, admin=admin, db=db_session)

    assert stats["opportunities"] == 2
    assert stats["users"]["total"] == 1
    assert [o["title"] for o in stats["top_viewed"]] == ["Most viewed"]
