# opportunity_board/models/application.py
from sqlalchemy import Column, Integer, Boolean, Text, ForeignKey, TIMESTAMP, UniqueConstraint, func
from sqlalchemy.orm import relationship
from opportunity_board.database import Base


class ApplicationStatusType(Base):
    __tablename__ = "application_status_types"

    id = Column(Integer, primary_key=True, index=True)
    is_applied = Column(Boolean, default=False, nullable=False)
    is_confirm = Column(Boolean, default=False, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    application = relationship("Application", back_populates="status", uselist=False)


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    opportunity_id = Column(Integer, ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True)
    status_id = Column(Integer, ForeignKey("application_status_types.id", ondelete="CASCADE"), unique=True, nullable=False)
    feedback = Column(Text)
    created_at = Column(TIMESTAMP, server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "opportunity_id", name="uq_application_user_opportunity"),
    )

    user = relationship("User", back_populates="applications")
    opportunity = relationship("Opportunity", back_populates="applications")
    status = relationship("ApplicationStatusType", back_populates="application")
