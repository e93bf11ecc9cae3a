# opportunity_board/models/engagement.py
from sqlalchemy import Column, Integer, String, ForeignKey, TIMESTAMP, JSON, UniqueConstraint, func
from sqlalchemy.orm import relationship
from opportunity_board.database import Base


class Bookmark(Base):
    __tablename__ = "bookmarks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    opportunity_id = Column(Integer, ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "opportunity_id", name="uq_bookmark_user_opportunity"),
    )

    user = relationship("User")
    opportunity = relationship("Opportunity", back_populates="bookmarks")


class OpportunityView(Base):
    """Marks that a user's view of an opportunity has been counted."""

    __tablename__ = "opportunity_views"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    opportunity_id = Column(Integer, ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "opportunity_id", name="uq_opportunity_view_user_opportunity"),
    )


class EventLog(Base):
    """Append-only activity log. ``entity_id`` is stored as text so any entity fits."""

    __tablename__ = "event_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    entity_type = Column(String(50), nullable=True, index=True)
    entity_id = Column(String(64), nullable=True, index=True)
    event_type = Column(String(50), nullable=False, index=True)
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False, index=True)
