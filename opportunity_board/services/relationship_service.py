# opportunity_board/services/relationship_service.py
"""
Relationship Service
Friend request lifecycle and organization follows.

FriendRequest: PENDING -> ACCEPTED (creates the Friendship) or
PENDING -> DECLINED (terminal). Pairs are always matched in both orderings.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from opportunity_board.crud import catalog as catalog_crud
from opportunity_board.crud.common import insert_ignore
from opportunity_board.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from opportunity_board.models import (
    Follow,
    FriendRequest,
    FriendRequestStatus,
    Friendship,
    NotificationType,
    Organization,
    User,
)
from opportunity_board.services import notification_service

logger = logging.getLogger(__name__)


def _pair_filter(column_a, column_b, user_a: int, user_b: int):
    return or_(
        (column_a == user_a) & (column_b == user_b),
        (column_a == user_b) & (column_b == user_a),
    )


def find_request_between(db: Session, user_a: int, user_b: int) -> Optional[FriendRequest]:
    return db.query(FriendRequest).filter(
        _pair_filter(FriendRequest.sender_id, FriendRequest.receiver_id, user_a, user_b)
    ).first()


def find_friendship_between(db: Session, user_a: int, user_b: int) -> Optional[Friendship]:
    return db.query(Friendship).filter(
        _pair_filter(Friendship.user_id, Friendship.friend_id, user_a, user_b)
    ).first()


def _user_card(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "profile_image": user.profile_image,
        "bio": user.bio,
    }


def serialize_request(request: FriendRequest) -> Dict[str, Any]:
    return {
        "id": request.id,
        "sender_id": request.sender_id,
        "receiver_id": request.receiver_id,
        "status": FriendRequestStatus(request.status).value,
        "created_at": request.created_at.isoformat() if request.created_at else None,
    }


# ======================
# FRIEND REQUESTS
# ======================

def send_request(db: Session, *, sender: User, receiver_id: int) -> FriendRequest:
    if sender.id == receiver_id:
        raise ValidationError("Cannot send friend request to yourself")

    receiver = db.query(User).filter(User.id == receiver_id, User.is_active.is_(True)).first()
    if not receiver:
        raise NotFoundError("Receiver not found")

    if find_request_between(db, sender.id, receiver_id):
        raise ConflictError("Friend request already exists")

    if find_friendship_between(db, sender.id, receiver_id):
        raise ConflictError("Already friends")

    try:
        request = FriendRequest(
            sender_id=sender.id,
            receiver_id=receiver_id,
            status=FriendRequestStatus.PENDING,
        )
        db.add(request)
        db.flush()

        notification = notification_service.create_notification(
            db,
            user_id=receiver_id,
            type=NotificationType.FRIEND_REQUEST,
            message=f"{sender.full_name} sent you a friend request",
            related_entity_id=request.id,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Friend request already exists")

    db.refresh(request)
    notification_service.deliver(db, notification)
    logger.info("Friend request %s sent (%s -> %s)", request.id, sender.id, receiver_id)
    return request


def respond_to_request(
    db: Session,
    *,
    user: User,
    request_id: int,
    status: FriendRequestStatus,
) -> Dict[str, Any]:
    status = FriendRequestStatus(status)
    if status not in (FriendRequestStatus.ACCEPTED, FriendRequestStatus.DECLINED):
        raise ValidationError("Invalid status. Must be ACCEPTED or DECLINED")

    request = db.query(FriendRequest).filter(FriendRequest.id == request_id).first()
    if not request:
        raise NotFoundError("Friend request not found")

    if request.receiver_id != user.id:
        raise ForbiddenError("Not authorized to respond to this friend request")

    if request.status != FriendRequestStatus.PENDING:
        raise ValidationError("Friend request is no longer pending")

    request.status = status
    if status == FriendRequestStatus.ACCEPTED:
        if not find_friendship_between(db, request.sender_id, request.receiver_id):
            db.add(Friendship(user_id=request.sender_id, friend_id=request.receiver_id))
        message = f"{user.full_name} accepted your friend request"
    else:
        message = f"{user.full_name} declined your friend request"

    notification = notification_service.create_notification(
        db,
        user_id=request.sender_id,
        type=NotificationType.FRIEND_REQUEST,
        message=message,
        related_entity_id=user.id,
    )
    db.commit()
    notification_service.deliver(db, notification)

    accepted = status == FriendRequestStatus.ACCEPTED
    return {
        "id": request.id,
        "status": status.value,
        "friendship": accepted,
        "message": "Friend request accepted" if accepted else "Friend request declined",
    }


def list_incoming_requests(db: Session, *, user_id: int) -> List[Dict[str, Any]]:
    rows = (
        db.query(FriendRequest)
        .filter(
            FriendRequest.receiver_id == user_id,
            FriendRequest.status == FriendRequestStatus.PENDING,
        )
        .order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
        .all()
    )
    return [{**serialize_request(r), "sender": _user_card(r.sender)} for r in rows]


def list_sent_requests(db: Session, *, user_id: int) -> List[Dict[str, Any]]:
    rows = (
        db.query(FriendRequest)
        .filter(
            FriendRequest.sender_id == user_id,
            FriendRequest.status == FriendRequestStatus.PENDING,
        )
        .order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
        .all()
    )
    return [{**serialize_request(r), "receiver": _user_card(r.receiver)} for r in rows]


# ======================
# FRIENDSHIPS
# ======================

def list_friends(db: Session, *, user_id: int) -> List[Dict[str, Any]]:
    rows = db.query(Friendship).filter(
        or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)
    ).all()
    friends = [row.friend if row.user_id == user_id else row.user for row in rows]
    return [_user_card(friend) for friend in sorted(friends, key=lambda u: (u.first_name, u.id))]


def remove_friend(db: Session, *, user_id: int, friend_id: int) -> int:
    removed = db.query(Friendship).filter(
        _pair_filter(Friendship.user_id, Friendship.friend_id, user_id, friend_id)
    ).delete(synchronize_session=False)
    if not removed:
        raise NotFoundError("Friendship not found")
    # Clear the old request so the pair can befriend again later.
    db.query(FriendRequest).filter(
        _pair_filter(FriendRequest.sender_id, FriendRequest.receiver_id, user_id, friend_id)
    ).delete(synchronize_session=False)
    db.commit()
    return int(removed)


def friendship_status(db: Session, *, user_id: int, other_id: int) -> Dict[str, Any]:
    if user_id == other_id:
        return {"status": "self", "request_id": None}
    if find_friendship_between(db, user_id, other_id):
        return {"status": "friends", "request_id": None}
    request = find_request_between(db, user_id, other_id)
    if request and request.status == FriendRequestStatus.PENDING:
        direction = "request_sent" if request.sender_id == user_id else "request_received"
        return {"status": direction, "request_id": request.id}
    return {"status": "none", "request_id": None}


# ======================
# FOLLOWS
# ======================

def toggle_follow(
    db: Session,
    *,
    user_id: int,
    organization_id: int,
    follow: bool,
) -> Dict[str, Any]:
    """
    Idempotent follow/unfollow. Only the call that actually creates the
    Follow row produces a notification.
    """
    organization = catalog_crud.get_organization(db, organization_id)
    if not organization:
        raise NotFoundError("Organization not found")

    notification = None
    if follow:
        created = insert_ignore(
            db,
            Follow,
            conflict_columns=("user_id", "organization_id"),
            user_id=user_id,
            organization_id=organization_id,
        )
        if created:
            notification = notification_service.create_notification(
                db,
                user_id=user_id,
                type=NotificationType.ORGANIZATION_UPDATE,
                message=f"You are now following {organization.name}",
                related_entity_id=organization_id,
            )
        message = f"Now following {organization.name}"
    else:
        db.query(Follow).filter(
            Follow.user_id == user_id,
            Follow.organization_id == organization_id,
        ).delete(synchronize_session=False)
        message = f"Stopped following {organization.name}"

    db.commit()
    notification_service.deliver(db, notification)
    return {"following": bool(follow), "message": message}


def is_following(db: Session, *, user_id: int, organization_id: int) -> bool:
    return db.query(Follow.id).filter(
        Follow.user_id == user_id,
        Follow.organization_id == organization_id,
    ).first() is not None


def list_followed_organizations(db: Session, *, user_id: int) -> List[Organization]:
    return (
        db.query(Organization)
        .join(Follow, Follow.organization_id == Organization.id)
        .filter(Follow.user_id == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .all()
    )


def follower_ids(db: Session, *, organization_id: int) -> List[int]:
    return [
        row.user_id
        for row in db.query(Follow.user_id).filter(Follow.organization_id == organization_id).all()
    ]
