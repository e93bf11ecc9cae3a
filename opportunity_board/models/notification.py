import enum

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, TIMESTAMP, Enum, func
from sqlalchemy.orm import relationship
from opportunity_board.database import Base


class NotificationType(str, enum.Enum):
    FRIEND_REQUEST = "FRIEND_REQUEST"
    ORGANIZATION_UPDATE = "ORGANIZATION_UPDATE"
    NEW_OPPORTUNITY = "NEW_OPPORTUNITY"
    DEADLINE_REMINDER = "DEADLINE_REMINDER"
    APPLICATION_UPDATE = "APPLICATION_UPDATE"
    NEW_MESSAGE = "NEW_MESSAGE"
    SYSTEM = "SYSTEM"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(NotificationType), nullable=False, index=True)
    message = Column(String(500), nullable=False)
    # Id of the friend request, organization, opportunity or conversation the
    # message is about.
    related_entity_id = Column(Integer, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)

    user = relationship("User")
