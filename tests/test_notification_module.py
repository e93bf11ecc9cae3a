from __future__ import annotations

import pytest

from opportunity_board.api.notification import (
    get_my_notifications,
    get_unread_count,
    mark_all_notifications_read,
    mark_notification_read,
)
from opportunity_board.errors import NotFoundError
from opportunity_board.models import NotificationType
from opportunity_board.services import notification_service


class InlineThread:
    """Runs the dispatch target synchronously."""

    def __init__(self, target, args=(), kwargs=None, daemon=None):
        self._target = target
        self._args = args
        self._kwargs = kwargs or {}

    def start(self):
        self._target(*self._args, **self._kwargs)


def _notify(db, user, message, type=NotificationType.SYSTEM, related_entity_id=None):
    notification = notification_service.create_notification(
        db,
        user_id=user.id,
        type=type,
        message=message,
        related_entity_id=related_entity_id,
    )
    db.commit()
    return notification


def test_notification_api_read_flow(db_session, make_user):
    user = make_user()

    first = _notify(db_session, user, "Welcome aboard")
    second = _notify(db_session, user, "Profile reviewed")
    second.is_read = True
    db_session.commit()

    unread = get_my_notifications(unread_only=True, limit=50, current_user=user, db=db_session)
    assert len(unread) == 1
    assert unread[0]["id"] == first.id
    assert unread[0]["type"] == "SYSTEM"

    assert get_unread_count(current_user=user, db=db_session) == {"count": 1}

    marked = mark_notification_read(notification_id=first.id, current_user=user, db=db_session)
    assert marked["id"] == first.id
    assert get_unread_count(current_user=user, db=db_session) == {"count": 0}

    _notify(db_session, user, "Another one")
    all_marked = mark_all_notifications_read(current_user=user, db=db_session)
    assert all_marked["updated"] == 1
    assert get_unread_count(current_user=user, db=db_session) == {"count": 0}


def test_mark_notification_read_404(db_session, make_user):
    user = make_user()
    with pytest.raises(NotFoundError) as exc_info:
        mark_notification_read(notification_id=99999, current_user=user, db=db_session)
    assert exc_info.value.status_code == 404


def test_cannot_read_someone_elses_notification(db_session, make_user):
    owner = make_user()
    other = make_user()
    notification = _notify(db_session, owner, "Private")

    with pytest.raises(NotFoundError):
        mark_notification_read(notification_id=notification.id, current_user=other, db=db_session)


def test_dispatch_email_for_notification_success(db_session, make_user, monkeypatch):
    user = make_user("Mail", email="mailok@example.com")
    notification = _notify(db_session, user, "Deadline tomorrow", NotificationType.DEADLINE_REMINDER, 12)

    sent_payload = {}

    def fake_send_email(**kwargs):
        sent_payload.update(kwargs)
        return True

    monkeypatch.setattr(notification_service, "is_email_enabled", lambda: True)
    monkeypatch.setattr(notification_service, "send_email", fake_send_email)

    monkeypatch.setattr(notification_service.threading, "Thread", InlineThread)

    sent = notification_service.dispatch_email_for_notification(db_session, notification)
    assert sent is True

    assert sent_payload["to_email"] == "mailok@example.com"
    assert sent_payload["subject"] == "Deadline reminder"
    assert "Deadline tomorrow" in sent_payload["body_text"]
    assert "/opportunities/12" in sent_payload["body_text"]


def test_dispatch_email_disabled_is_skipped(db_session, make_user, monkeypatch):
    user = make_user()
    notification = _notify(db_session, user, "Quiet")

    monkeypatch.setattr(notification_service, "is_email_enabled", lambda: False)

    assert notification_service.dispatch_email_for_notification(db_session, notification) is False


def test_dispatch_never_raises(db_session, make_user, monkeypatch):
    user = make_user()
    notification = _notify(db_session, user, "Boom")

    def broken(*args, **kwargs):
        raise RuntimeError("smtp exploded")

    monkeypatch.setattr(notification_service, "is_email_enabled", broken)
    monkeypatch.setattr(notification_service, "is_telegram_enabled", broken)

    notification_service.deliver(db_session, notification, None)
