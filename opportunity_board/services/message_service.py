"""
Message Service
Direct conversations between two users, with a read marker per participant.

Each pair of users shares at most one conversation, keyed by the canonical
"low:high" pair key. Unread counts are messages from other participants
newer than the reader's last_read_message_id.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from opportunity_board.errors import NotFoundError, ValidationError
from opportunity_board.models import (
    Conversation,
    ConversationParticipant,
    Message,
    NotificationType,
    User,
)
from opportunity_board.models.message import direct_pair_key
from opportunity_board.services import notification_service
from opportunity_board.utils.clock import utcnow

logger = logging.getLogger(__name__)

NOT_A_PARTICIPANT_MESSAGE = "Conversation not found or you are not a participant"


def _participant_card(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "profile_image": user.profile_image,
    }


def serialize_message(message: Message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "content": message.content,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }


def _clean_content(content: str) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message content is required")
    return content


def _membership(db: Session, *, user_id: int, conversation_id: int) -> ConversationParticipant:
    membership = db.query(ConversationParticipant).filter(
        ConversationParticipant.conversation_id == conversation_id,
        ConversationParticipant.user_id == user_id,
    ).first()
    if not membership:
        raise NotFoundError(NOT_A_PARTICIPANT_MESSAGE)
    return membership


def _unread_for(db: Session, membership: ConversationParticipant) -> int:
    query = db.query(Message.id).filter(
        Message.conversation_id == membership.conversation_id,
        Message.sender_id != membership.user_id,
    )
    if membership.last_read_message_id is not None:
        query = query.filter(Message.id > membership.last_read_message_id)
    return query.count()


# ======================
# READS
# ======================

def list_conversations(db: Session, *, user_id: int) -> List[Dict[str, Any]]:
    memberships = (
        db.query(ConversationParticipant)
        .join(Conversation, Conversation.id == ConversationParticipant.conversation_id)
        .filter(ConversationParticipant.user_id == user_id)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .all()
    )

    result = []
    for membership in memberships:
        conversation = membership.conversation
        messages = db.query(Message).filter(Message.conversation_id == conversation.id)
        last_message = messages.order_by(Message.created_at.desc(), Message.id.desc()).first()
        result.append({
            "id": conversation.id,
            "participants": [
                _participant_card(p.user) for p in conversation.participants if p.user_id != user_id
            ],
            "last_message": serialize_message(last_message) if last_message else None,
            "message_count": messages.count(),
            "unread_count": _unread_for(db, membership),
            "updated_at": conversation.updated_at.isoformat() if conversation.updated_at else None,
        })
    return result


def unread_total(db: Session, *, user_id: int) -> int:
    memberships = db.query(ConversationParticipant).filter(
        ConversationParticipant.user_id == user_id
    ).all()
    return sum(_unread_for(db, membership) for membership in memberships)


def get_conversation(
    db: Session,
    *,
    user_id: int,
    conversation_id: int,
    limit: int = 50,
    before: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Return a page of messages, oldest first, and mark them read.

    `before` pages backwards through history; without it the newest
    `limit` messages are returned.
    """
    membership = _membership(db, user_id=user_id, conversation_id=conversation_id)

    query = db.query(Message).filter(Message.conversation_id == conversation_id)
    if before is not None:
        query = query.filter(Message.created_at < before)
    page = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()

    if page:
        newest_id = max(m.id for m in page)
        if membership.last_read_message_id is None or newest_id > membership.last_read_message_id:
            membership.last_read_message_id = newest_id
            db.commit()

    conversation = membership.conversation
    return {
        "conversation": {
            "id": conversation.id,
            "participants": [
                _participant_card(p.user) for p in conversation.participants if p.user_id != user_id
            ],
        },
        "messages": [serialize_message(m) for m in reversed(page)],
    }


# ======================
# WRITES
# ======================

def _direct_conversation(db: Session, user_a: int, user_b: int) -> Conversation:
    key = direct_pair_key(user_a, user_b)
    conversation = db.query(Conversation).filter(Conversation.pair_key == key).first()
    if conversation:
        return conversation

    conversation = Conversation(
        pair_key=key,
        participants=[
            ConversationParticipant(user_id=user_a),
            ConversationParticipant(user_id=user_b),
        ],
    )
    db.add(conversation)
    try:
        db.commit()
    except IntegrityError:
        # Both users opened the conversation at once; use the row that won.
        db.rollback()
        conversation = db.query(Conversation).filter(Conversation.pair_key == key).first()
        if conversation is None:
            raise
        return conversation

    logger.info("Conversation %s opened (%s, %s)", conversation.id, user_a, user_b)
    return conversation


def _post(db: Session, *, conversation: Conversation, sender: User, content: str) -> Message:
    message = Message(conversation_id=conversation.id, sender_id=sender.id, content=content)
    db.add(message)
    conversation.updated_at = utcnow()
    db.flush()

    notifications = []
    for participant in conversation.participants:
        if participant.user_id == sender.id:
            participant.last_read_message_id = message.id
            continue
        notifications.append(notification_service.create_notification(
            db,
            user_id=participant.user_id,
            type=NotificationType.NEW_MESSAGE,
            message=f"New message from {sender.full_name}",
            related_entity_id=conversation.id,
        ))
    db.commit()
    db.refresh(message)

    notification_service.deliver(db, *notifications)
    logger.info("Message %s posted to conversation %s by user %s", message.id, conversation.id, sender.id)
    return message


def send_to_user(db: Session, *, sender: User, recipient_id: int, content: str) -> Dict[str, Any]:
    """Send a direct message, opening the pair's conversation on first contact."""
    content = _clean_content(content)
    if recipient_id == sender.id:
        raise ValidationError("You cannot message yourself")

    recipient = db.query(User).filter(User.id == recipient_id, User.is_active.is_(True)).first()
    if not recipient:
        raise NotFoundError("Recipient not found")

    conversation = _direct_conversation(db, sender.id, recipient_id)
    message = _post(db, conversation=conversation, sender=sender, content=content)
    return {"conversation": {"id": conversation.id, "message": serialize_message(message)}}


def reply(db: Session, *, sender: User, conversation_id: int, content: str) -> Message:
    content = _clean_content(content)
    membership = _membership(db, user_id=sender.id, conversation_id=conversation_id)
    return _post(db, conversation=membership.conversation, sender=sender, content=content)
