# opportunity_board/models/social.py
import enum

from sqlalchemy import Column, Integer, ForeignKey, TIMESTAMP, Enum, UniqueConstraint, func
from sqlalchemy.orm import relationship
from opportunity_board.database import Base


class FriendRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class Friendship(Base):
    """One row per friend pair; always queried in both orderings."""

    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    friend_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendship_pair"),
    )

    user = relationship("User", foreign_keys=[user_id])
    friend = relationship("User", foreign_keys=[friend_id])


def _pair_low(context):
    params = context.get_current_parameters()
    return min(params["sender_id"], params["receiver_id"])


def _pair_high(context):
    params = context.get_current_parameters()
    return max(params["sender_id"], params["receiver_id"])


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Unordered pair key: one request per pair whichever side sent it.
    user_low = Column(Integer, nullable=False, default=_pair_low)
    user_high = Column(Integer, nullable=False, default=_pair_high)
    status = Column(Enum(FriendRequestStatus), default=FriendRequestStatus.PENDING, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_low", "user_high", name="uq_friend_request_pair"),
    )

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])


class Follow(Base):
    __tablename__ = "follows"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", name="uq_follow_user_organization"),
    )

    user = relationship("User")
    organization = relationship("Organization", back_populates="follows")
