from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from opportunity_board.database import get_db
from opportunity_board.errors import NotFoundError
from opportunity_board.models import Notification, NotificationType, User
from opportunity_board.services import notification_service
from opportunity_board.utils.security import get_current_user

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _serialize(n: Notification) -> dict:
    return {
        "id": n.id,
        "user_id": n.user_id,
        "type": NotificationType(n.type).value,
        "message": n.message,
        "related_entity_id": n.related_entity_id,
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


@router.get("/my")
def get_my_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notifications = notification_service.list_user_notifications(
        db,
        user_id=current_user.id,
        unread_only=unread_only,
        limit=limit,
    )
    return [_serialize(n) for n in notifications]


@router.get("/unread-count")
def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"count": notification_service.get_unread_count(db, user_id=current_user.id)}


@router.patch("/read-all")
def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    count = notification_service.mark_all_notifications_read(db, user_id=current_user.id)
    return {"message": "All notifications marked as read", "updated": count}


@router.patch("/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification = notification_service.mark_notification_read(
        db,
        user_id=current_user.id,
        notification_id=notification_id,
    )
    if not notification:
        raise NotFoundError("Notification not found")
    return {"message": "Notification marked as read", "id": notification.id}
