from __future__ import annotations

from datetime import timedelta

import pytest

from opportunity_board.api.messages import (
    get_conversation,
    get_unread_count,
    list_conversations,
    reply_to_conversation,
    send_message,
)
from opportunity_board.errors import NotFoundError, ValidationError
from opportunity_board.models import Conversation, Message, Notification, NotificationType
from opportunity_board.schemas import ConversationReply, DirectMessageCreate
from opportunity_board.services import message_service
from opportunity_board.utils.clock import utcnow


def _send(db, sender, recipient, text="hello"):
    return send_message(
        payload=DirectMessageCreate(recipient_id=recipient.id, message=text),
        current_user=sender,
        db=db,
    )


def _open(db, user, conversation_id, limit=50, before=None):
    return get_conversation(
        conversation_id=conversation_id,
        limit=limit,
        before=before,
        current_user=user,
        db=db,
    )


def test_first_message_opens_conversation_and_notifies(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")

    result = _send(db_session, alice, bob, "Are you going to the hackathon?")

    conversation_id = result["conversation"]["id"]
    assert result["conversation"]["message"]["content"] == "Are you going to the hackathon?"
    assert result["conversation"]["message"]["sender_id"] == alice.id

    notification = db_session.query(Notification).filter(Notification.user_id == bob.id).one()
    assert notification.type == NotificationType.NEW_MESSAGE
    assert notification.related_entity_id == conversation_id
    assert "Alice" in notification.message
    assert db_session.query(Notification).filter(Notification.user_id == alice.id).count() == 0


def test_pair_shares_one_conversation_whoever_writes_first(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")

    first = _send(db_session, alice, bob)
    second = _send(db_session, bob, alice, "hi back")

    assert first["conversation"]["id"] == second["conversation"]["id"]
    assert db_session.query(Conversation).count() == 1


def test_cannot_message_self_or_inactive_users(db_session, make_user):
    alice = make_user("Alice")
    gone = make_user("Gone", is_active=False)

    with pytest.raises(ValidationError):
        _send(db_session, alice, alice)
    with pytest.raises(NotFoundError):
        _send(db_session, alice, gone)
    assert db_session.query(Conversation).count() == 0


def test_blank_content_is_rejected(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")

    with pytest.raises(ValidationError):
        message_service.send_to_user(db_session, sender=alice, recipient_id=bob.id, content="   ")


def test_reading_a_conversation_clears_unread(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")

    conversation_id = _send(db_session, alice, bob, "one")["conversation"]["id"]
    _send(db_session, alice, bob, "two")

    assert get_unread_count(current_user=bob, db=db_session) == {"count": 2}
    # Own messages never count as unread.
    assert get_unread_count(current_user=alice, db=db_session) == {"count": 0}

    page = _open(db_session, bob, conversation_id)

    assert [m["content"] for m in page["messages"]] == ["one", "two"]
    assert [p["id"] for p in page["conversation"]["participants"]] == [alice.id]
    assert get_unread_count(current_user=bob, db=db_session) == {"count": 0}

    reply_to_conversation(
        conversation_id=conversation_id,
        payload=ConversationReply(message="three"),
        current_user=alice,
        db=db_session,
    )
    assert get_unread_count(current_user=bob, db=db_session) == {"count": 1}


def test_outsiders_cannot_read_or_reply(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    mallory = make_user("Mallory")
    conversation_id = _send(db_session, alice, bob)["conversation"]["id"]

    with pytest.raises(NotFoundError):
        _open(db_session, mallory, conversation_id)
    with pytest.raises(NotFoundError):
        reply_to_conversation(
            conversation_id=conversation_id,
            payload=ConversationReply(message="let me in"),
            current_user=mallory,
            db=db_session,
        )
    assert db_session.query(Message).count() == 1


def test_conversation_list_shows_latest_activity_first(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    carol = make_user("Carol")

    with_bob = _send(db_session, alice, bob, "to bob")["conversation"]["id"]
    with_carol = _send(db_session, alice, carol, "to carol")["conversation"]["id"]
    _send(db_session, bob, alice, "bob again")

    listing = list_conversations(current_user=alice, db=db_session)

    assert [c["id"] for c in listing] == [with_bob, with_carol]
    assert listing[0]["last_message"]["content"] == "bob again"
    assert listing[0]["message_count"] == 2
    assert listing[0]["unread_count"] == 1
    assert [p["first_name"] for p in listing[0]["participants"]] == ["Bob"]
    assert listing[1]["unread_count"] == 0


def test_history_pages_backwards(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    conversation_id = _send(db_session, alice, bob, "m0")["conversation"]["id"]
    for n in range(1, 5):
        _send(db_session, alice, bob, f"m{n}")

    start = utcnow() - timedelta(hours=1)
    for n, message in enumerate(db_session.query(Message).order_by(Message.id).all()):
        message.created_at = start + timedelta(minutes=n)
    db_session.commit()

    latest = _open(db_session, bob, conversation_id, limit=2)
    assert [m["content"] for m in latest["messages"]] == ["m3", "m4"]

    older = _open(db_session, bob, conversation_id, limit=2, before=start + timedelta(minutes=3))
    assert [m["content"] for m in older["messages"]] == ["m1", "m2"]


def test_reading_older_page_keeps_read_marker(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    conversation_id = _send(db_session, alice, bob, "m0")["conversation"]["id"]
    _send(db_session, alice, bob, "m1")

    _open(db_session, bob, conversation_id)
    _open(db_session, bob, conversation_id, limit=1, before=utcnow() - timedelta(days=1))
    _send(db_session, alice, bob, "m2")

    assert message_service.unread_total(db_session, user_id=bob.id) == 1
