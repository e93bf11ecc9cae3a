from __future__ import annotations

from datetime import timedelta

import pytest

from opportunity_board.api.applications import list_my_applications, list_unconfirmed_applications
from opportunity_board.api.opportunities import apply, confirm_application, get_application_status
from opportunity_board.errors import ConflictError, NotFoundError
from opportunity_board.models import Application, ApplicationStatusType, Notification, NotificationType
from opportunity_board.schemas import ApplicationConfirm, ApplyRequest
from opportunity_board.services import application_service
from opportunity_board.utils.clock import utcnow


def _apply(db, user, opportunity):
    return apply(opportunity_id=opportunity.id, payload=ApplyRequest(), current_user=user, db=db)


def test_apply_creates_application_and_status(db_session, make_user, make_opportunity):
    user = make_user()
    opportunity = make_opportunity("Research Grant")

    result = _apply(db_session, user, opportunity)

    assert result["status"]["is_applied"] is False
    assert result["status"]["is_confirm"] is False
    assert result["opportunity"]["title"] == "Research Grant"
    assert db_session.query(ApplicationStatusType).count() == 1
    assert get_application_status(opportunity_id=opportunity.id, current_user=user, db=db_session) == {
        "status": {"is_applied": False, "is_confirm": False}
    }


def test_duplicate_apply_conflicts(db_session, make_user, make_opportunity):
    user = make_user()
    opportunity = make_opportunity()
    _apply(db_session, user, opportunity)

    with pytest.raises(ConflictError) as exc_info:
        _apply(db_session, user, opportunity)

    assert exc_info.value.status_code == 409
    assert db_session.query(Application).count() == 1


def test_racing_apply_is_stopped_by_unique_constraint(db_session, make_user, make_opportunity, monkeypatch):
    user = make_user()
    opportunity = make_opportunity()
    _apply(db_session, user, opportunity)

    # Second caller passed the existence check before the first one committed.
    monkeypatch.setattr(application_service, "get_application", lambda db, **kwargs: None)

    with pytest.raises(ConflictError):
        _apply(db_session, user, opportunity)

    assert db_session.query(Application).filter(
        Application.user_id == user.id,
        Application.opportunity_id == opportunity.id,
    ).count() == 1


def test_apply_unknown_opportunity(db_session, make_user):
    user = make_user()
    with pytest.raises(NotFoundError):
        apply(opportunity_id=123, payload=ApplyRequest(), current_user=user, db=db_session)


def test_confirmation_updates_existing_status(db_session, make_user, make_opportunity):
    user = make_user()
    opportunity = make_opportunity()
    _apply(db_session, user, opportunity)

    result = confirm_application(
        opportunity_id=opportunity.id,
        payload=ApplicationConfirm(is_applied=True),
        current_user=user,
        db=db_session,
    )

    assert result["status"] == {"id": result["status"]["id"], "is_applied": True, "is_confirm": True}
    assert db_session.query(Application).count() == 1
    assert db_session.query(ApplicationStatusType).count() == 1
    assert db_session.query(Notification).filter(
        Notification.user_id == user.id,
        Notification.type == NotificationType.APPLICATION_UPDATE,
    ).count() == 1


def test_confirmation_without_application(db_session, make_user, make_opportunity):
    user = make_user()
    opportunity = make_opportunity()
    with pytest.raises(NotFoundError):
        confirm_application(
            opportunity_id=opportunity.id,
            payload=ApplicationConfirm(is_applied=False),
            current_user=user,
            db=db_session,
        )


def _backdate(db, user, opportunity, *, minutes):
    application = db.query(Application).filter(
        Application.user_id == user.id,
        Application.opportunity_id == opportunity.id,
    ).one()
    application.created_at = utcnow() - timedelta(minutes=minutes)
    db.commit()
    return application


def test_unconfirmed_sweep_respects_grace_window_and_confirmation(db_session, make_user, make_opportunity):
    user = make_user()
    old_pending = make_opportunity("Old pending")
    old_confirmed = make_opportunity("Old confirmed")
    fresh_pending = make_opportunity("Fresh pending")
    for opportunity in (old_pending, old_confirmed, fresh_pending):
        _apply(db_session, user, opportunity)

    _backdate(db_session, user, old_pending, minutes=180)
    confirmed = _backdate(db_session, user, old_confirmed, minutes=180)
    confirmed.status.is_confirm = True
    _backdate(db_session, user, fresh_pending, minutes=5)
    db_session.commit()

    unconfirmed = application_service.list_unconfirmed(db_session, user_id=user.id, grace_minutes=60)

    assert [a.opportunity_id for a in unconfirmed] == [old_pending.id]


def test_unconfirmed_endpoint_uses_configured_window(db_session, make_user, make_opportunity, monkeypatch):
    user = make_user()
    opportunity = make_opportunity()
    _apply(db_session, user, opportunity)
    _backdate(db_session, user, opportunity, minutes=30)

    monkeypatch.setattr(application_service.settings, "UNCONFIRMED_APPLICATION_GRACE_MINUTES", 1440)
    assert list_unconfirmed_applications(current_user=user, db=db_session) == []

    monkeypatch.setattr(application_service.settings, "UNCONFIRMED_APPLICATION_GRACE_MINUTES", 10)
    result = list_unconfirmed_applications(current_user=user, db=db_session)
    assert [a["opportunity_id"] for a in result] == [opportunity.id]
    assert len(list_my_applications(current_user=user, db=db_session)) == 1
