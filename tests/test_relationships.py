from __future__ import annotations

import pytest

from opportunity_board.api.friends import (
    get_friendship_status,
    list_friends,
    list_incoming_requests,
    remove_friend,
    respond_to_request,
    send_friend_request,
)
from opportunity_board.api.organizations import get_follow_status, toggle_follow
from opportunity_board.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from opportunity_board.models import (
    Follow,
    FriendRequest,
    FriendRequestStatus,
    Friendship,
    Notification,
    NotificationType,
)
from opportunity_board.schemas import FollowToggle, FriendRequestCreate, FriendRequestResponse


def _send(db, sender, receiver):
    return send_friend_request(
        payload=FriendRequestCreate(receiver_id=receiver.id),
        current_user=sender,
        db=db,
    )


def test_send_request_creates_pending_and_notifies(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")

    request = _send(db_session, alice, bob)

    assert request["status"] == "PENDING"
    notes = db_session.query(Notification).filter(Notification.user_id == bob.id).all()
    assert len(notes) == 1
    assert notes[0].type == NotificationType.FRIEND_REQUEST
    assert [r["sender"]["id"] for r in list_incoming_requests(current_user=bob, db=db_session)] == [alice.id]


def test_request_to_self_is_rejected(db_session, make_user):
    alice = make_user("Alice")
    with pytest.raises(ValidationError):
        _send(db_session, alice, alice)


def test_request_to_unknown_user(db_session, make_user):
    alice = make_user("Alice")
    with pytest.raises(NotFoundError):
        send_friend_request(payload=FriendRequestCreate(receiver_id=999), current_user=alice, db=db_session)


def test_duplicate_request_conflicts_in_both_directions(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    _send(db_session, alice, bob)

    with pytest.raises(ConflictError) as same_direction:
        _send(db_session, alice, bob)
    with pytest.raises(ConflictError):
        _send(db_session, bob, alice)

    assert same_direction.value.status_code == 409
    assert db_session.query(FriendRequest).count() == 1


def test_crossed_requests_hit_the_pair_constraint(db_session, make_user, monkeypatch):
    from opportunity_board.services import relationship_service

    alice = make_user("Alice")
    bob = make_user("Bob")
    # Both senders pass the existence check before either commits.
    monkeypatch.setattr(relationship_service, "find_request_between", lambda *args: None)

    _send(db_session, alice, bob)
    with pytest.raises(ConflictError):
        _send(db_session, bob, alice)

    rows = db_session.query(FriendRequest.sender_id, FriendRequest.receiver_id).all()
    assert rows == [(alice.id, bob.id)]
    assert db_session.query(Notification).filter(Notification.user_id == alice.id).count() == 0


def test_request_between_friends_conflicts(db_session, make_user, befriend):
    alice = make_user("Alice")
    bob = make_user("Bob")
    befriend(bob, alice)

    with pytest.raises(ConflictError) as exc_info:
        _send(db_session, alice, bob)
    assert exc_info.value.message == "Already friends"
    assert db_session.query(FriendRequest).count() == 0


def test_accept_creates_friendship_and_notifies_sender(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    request = _send(db_session, alice, bob)

    result = respond_to_request(
        request_id=request["id"],
        payload=FriendRequestResponse(status=FriendRequestStatus.ACCEPTED),
        current_user=bob,
        db=db_session,
    )

    assert result["friendship"] is True
    assert db_session.query(Friendship).count() == 1
    assert [f["id"] for f in list_friends(current_user=alice, db=db_session)] == [bob.id]
    assert [f["id"] for f in list_friends(current_user=bob, db=db_session)] == [alice.id]
    assert db_session.query(Notification).filter(Notification.user_id == alice.id).count() == 1


def test_decline_is_terminal(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    request = _send(db_session, alice, bob)
    decline = FriendRequestResponse(status=FriendRequestStatus.DECLINED)

    result = respond_to_request(request_id=request["id"], payload=decline, current_user=bob, db=db_session)
    assert result["friendship"] is False
    assert db_session.query(Friendship).count() == 0

    with pytest.raises(ValidationError):
        respond_to_request(request_id=request["id"], payload=decline, current_user=bob, db=db_session)


def test_only_receiver_may_respond(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    request = _send(db_session, alice, bob)

    with pytest.raises(ForbiddenError):
        respond_to_request(
            request_id=request["id"],
            payload=FriendRequestResponse(status=FriendRequestStatus.ACCEPTED),
            current_user=alice,
            db=db_session,
        )


def test_remove_friend_allows_new_request(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    request = _send(db_session, alice, bob)
    respond_to_request(
        request_id=request["id"],
        payload=FriendRequestResponse(status=FriendRequestStatus.ACCEPTED),
        current_user=bob,
        db=db_session,
    )

    remove_friend(friend_id=alice.id, current_user=bob, db=db_session)

    assert db_session.query(Friendship).count() == 0
    assert get_friendship_status(user_id=bob.id, current_user=alice, db=db_session)["status"] == "none"
    assert _send(db_session, bob, alice)["status"] == "PENDING"

    with pytest.raises(NotFoundError):
        remove_friend(friend_id=alice.id, current_user=bob, db=db_session)


def test_friendship_status_directions(db_session, make_user):
    alice = make_user("Alice")
    bob = make_user("Bob")
    request = _send(db_session, alice, bob)

    assert get_friendship_status(user_id=bob.id, current_user=alice, db=db_session) == {
        "status": "request_sent",
        "request_id": request["id"],
    }
    assert get_friendship_status(user_id=alice.id, current_user=bob, db=db_session)["status"] == "request_received"
    assert get_friendship_status(user_id=alice.id, current_user=alice, db=db_session)["status"] == "self"


def test_follow_twice_keeps_one_row_and_one_notification(db_session, make_user, make_organization):
    user = make_user()
    organization = make_organization("Open Science")

    first = toggle_follow(organization_id=organization.id, payload=FollowToggle(following=True), current_user=user, db=db_session)
    second = toggle_follow(organization_id=organization.id, payload=FollowToggle(following=True), current_user=user, db=db_session)

    assert first["following"] is True and second["following"] is True
    assert db_session.query(Follow).count() == 1
    notes = db_session.query(Notification).filter(
        Notification.user_id == user.id,
        Notification.type == NotificationType.ORGANIZATION_UPDATE,
    ).count()
    assert notes == 1
    assert get_follow_status(organization_id=organization.id, current_user=user, db=db_session) == {"following": True}


def test_unfollow_when_absent_is_noop(db_session, make_user, make_organization):
    user = make_user()
    organization = make_organization()

    result = toggle_follow(organization_id=organization.id, payload=FollowToggle(following=False), current_user=user, db=db_session)

    assert result["following"] is False
    assert db_session.query(Follow).count() == 0
    assert db_session.query(Notification).count() == 0


def test_follow_unknown_organization(db_session, make_user):
    user = make_user()
    with pytest.raises(NotFoundError):
        toggle_follow(organization_id=42, payload=FollowToggle(following=True), current_user=user, db=db_session)
