# opportunity_board/api/messages.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from opportunity_board.database import get_db
from opportunity_board.models import User
from opportunity_board.schemas import ConversationReply, DirectMessageCreate
from opportunity_board.services import message_service
from opportunity_board.utils.security import get_current_user

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.get("")
def list_conversations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return message_service.list_conversations(db, user_id=current_user.id)


@router.post("", status_code=status.HTTP_201_CREATED)
def send_message(
    payload: DirectMessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return message_service.send_to_user(
        db,
        sender=current_user,
        recipient_id=payload.recipient_id,
        content=payload.message,
    )


@router.get("/unread-count")
def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"count": message_service.unread_total(db, user_id=current_user.id)}


@router.get("/{conversation_id}")
def get_conversation(
    conversation_id: int,
    limit: int = Query(50, ge=1, le=100),
    before: Optional[datetime] = Query(None, description="Only messages older than this timestamp"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return message_service.get_conversation(
        db,
        user_id=current_user.id,
        conversation_id=conversation_id,
        limit=limit,
        before=before,
    )


@router.post("/{conversation_id}", status_code=status.HTTP_201_CREATED)
def reply_to_conversation(
    conversation_id: int,
    payload: ConversationReply,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    message = message_service.reply(
        db,
        sender=current_user,
        conversation_id=conversation_id,
        content=payload.message,
    )
    return message_service.serialize_message(message)
