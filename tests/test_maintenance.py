from __future__ import annotations

from datetime import timedelta

import pytest

from opportunity_board.api.cron import check_deadlines, require_cron_secret, update_opportunities
from opportunity_board.errors import UnauthorizedError
from opportunity_board.models import Bookmark, Notification, NotificationType, Opportunity, OpportunityStatus
from opportunity_board.services import maintenance_service
from opportunity_board.utils.clock import utcnow


def _status(db, opportunity):
    return db.query(Opportunity).filter(Opportunity.id == opportunity.id).one().status


def test_cron_secret_is_required(monkeypatch):
    monkeypatch.setattr(maintenance_service.settings, "CRON_API_SECRET", "s3cret")

    with pytest.raises(UnauthorizedError):
        require_cron_secret(authorization=None)
    with pytest.raises(UnauthorizedError):
        require_cron_secret(authorization="wrong")
    assert require_cron_secret(authorization="s3cret") is None


def test_cron_secret_rejects_near_misses(monkeypatch):
    monkeypatch.setattr(maintenance_service.settings, "CRON_API_SECRET", "s3cret")

    for attempt in ("s3creT", "s3cret ", "sécret"):
        with pytest.raises(UnauthorizedError):
            require_cron_secret(authorization=attempt)


def test_cron_rejects_everything_when_unconfigured(monkeypatch):
    monkeypatch.setattr(maintenance_service.settings, "CRON_API_SECRET", None)
    with pytest.raises(UnauthorizedError):
        require_cron_secret(authorization="")


def test_update_opportunities_advances_lifecycle(db_session, make_opportunity):
    now = utcnow()
    opening = make_opportunity(
        status=OpportunityStatus.OPENING_SOON,
        start_date=now - timedelta(hours=1),
        deadline=now + timedelta(days=30),
    )
    closing = make_opportunity(deadline=now + timedelta(days=2))
    expired = make_opportunity(status=OpportunityStatus.CLOSING_SOON, deadline=now - timedelta(hours=1))
    popular = make_opportunity(visit_count=300)
    stale = make_opportunity(created_at=now - timedelta(days=10))

    result = update_opportunities(db=db_session)

    assert _status(db_session, opening) == OpportunityStatus.ACTIVE
    assert _status(db_session, closing) == OpportunityStatus.CLOSING_SOON
    assert _status(db_session, expired) == OpportunityStatus.CLOSED
    assert db_session.query(Opportunity).filter(Opportunity.id == popular.id).one().is_popular is True
    assert db_session.query(Opportunity).filter(Opportunity.id == stale.id).one().is_new is False
    assert result["updated"]["closed"] == 1
    assert result["updated"]["not_new"] == 1


def test_deadline_reminders_once_per_day(db_session, make_user, make_opportunity):
    now = utcnow()
    user = make_user()
    urgent = make_opportunity("Urgent", deadline=now + timedelta(hours=3))
    far = make_opportunity("Far", deadline=now + timedelta(days=10))
    closed = make_opportunity("Closed", status=OpportunityStatus.CLOSED, deadline=now + timedelta(hours=3))
    for opportunity in (urgent, far, closed):
        db_session.add(Bookmark(user_id=user.id, opportunity_id=opportunity.id))
    db_session.commit()

    first = check_deadlines(db=db_session)
    second = check_deadlines(db=db_session)

    assert first["notifications_created"] == 1
    assert second["notifications_created"] == 0
    reminders = db_session.query(Notification).filter(
        Notification.type == NotificationType.DEADLINE_REMINDER
    ).all()
    assert [(n.user_id, n.related_entity_id) for n in reminders] == [(user.id, urgent.id)]
    assert reminders[0].message.startswith("URGENT")
