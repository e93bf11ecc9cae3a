from sqlalchemy import Column, Integer, Text, ForeignKey, TIMESTAMP, Enum, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from opportunity_board.database import Base
from opportunity_board.models.user import PrivacyLevel


class Participation(Base):
    __tablename__ = "participations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    opportunity_id = Column(Integer, ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    privacy_level = Column(Enum(PrivacyLevel), default=PrivacyLevel.ONLY_ME, nullable=False)
    feedback = Column(Text)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "opportunity_id", "year", name="uq_participation_user_opportunity_year"),
        CheckConstraint("year >= 2000 AND year <= 2100", name="check_participation_year_range"),
    )

    user = relationship("User", back_populates="participations")
    opportunity = relationship("Opportunity", back_populates="participations")
