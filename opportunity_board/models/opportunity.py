# opportunity_board/models/opportunity.py
import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, TIMESTAMP, Enum, func
from sqlalchemy.orm import relationship
from opportunity_board.database import Base


class OpportunityStatus(str, enum.Enum):
    OPENING_SOON = "OPENING_SOON"
    ACTIVE = "ACTIVE"
    CLOSING_SOON = "CLOSING_SOON"
    CLOSED = "CLOSED"


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text)
    created_at = Column(TIMESTAMP, server_default=func.now())

    opportunities = relationship("Opportunity", back_populates="category")


class Opportunity(Base):
    __tablename__ = "opportunities"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False)
    short_description = Column(String(300))
    eligibility = Column(Text)
    application_process = Column(Text)
    external_link = Column(String(500))
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    start_date = Column(TIMESTAMP, nullable=True)
    deadline = Column(TIMESTAMP, nullable=False)
    end_date = Column(TIMESTAMP, nullable=True)
    status = Column(Enum(OpportunityStatus), default=OpportunityStatus.ACTIVE, nullable=False, index=True)
    visit_count = Column(Integer, default=0, nullable=False)
    is_popular = Column(Boolean, default=False, nullable=False)
    is_new = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    category = relationship("Category", back_populates="opportunities")
    organization = relationship("Organization", back_populates="opportunities")
    participations = relationship("Participation", back_populates="opportunity", cascade="all, delete-orphan")
    bookmarks = relationship("Bookmark", back_populates="opportunity", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="opportunity", cascade="all, delete-orphan")
