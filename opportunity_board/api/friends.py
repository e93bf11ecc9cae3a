from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from opportunity_board.database import get_db
from opportunity_board.models import User
from opportunity_board.schemas import FriendRequestCreate, FriendRequestResponse
from opportunity_board.services import relationship_service
from opportunity_board.utils.security import get_current_user

router = APIRouter(prefix="/friends", tags=["Friends"])


@router.get("")
def list_friends(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return relationship_service.list_friends(db, user_id=current_user.id)


@router.post("/request", status_code=status.HTTP_201_CREATED)
def send_friend_request(
    payload: FriendRequestCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    request = relationship_service.send_request(db, sender=current_user, receiver_id=payload.receiver_id)
    return relationship_service.serialize_request(request)


@router.get("/requests")
def list_incoming_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return relationship_service.list_incoming_requests(db, user_id=current_user.id)


@router.get("/requests/sent")
def list_sent_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return relationship_service.list_sent_requests(db, user_id=current_user.id)


@router.put("/requests/{request_id}")
def respond_to_request(
    request_id: int,
    payload: FriendRequestResponse,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return relationship_service.respond_to_request(
        db,
        user=current_user,
        request_id=request_id,
        status=payload.status,
    )


@router.get("/status/{user_id}")
def get_friendship_status(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return relationship_service.friendship_status(db, user_id=current_user.id, other_id=user_id)


@router.delete("/{friend_id}")
def remove_friend(
    friend_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    relationship_service.remove_friend(db, user_id=current_user.id, friend_id=friend_id)
    return {"message": "Friend removed"}
