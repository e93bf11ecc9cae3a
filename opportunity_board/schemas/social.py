from pydantic import BaseModel

from opportunity_board.models.social import FriendRequestStatus


class FriendRequestCreate(BaseModel):
    receiver_id: int


class FriendRequestResponse(BaseModel):
    status: FriendRequestStatus


class FollowToggle(BaseModel):
    following: bool
