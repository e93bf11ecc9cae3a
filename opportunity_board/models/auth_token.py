# opportunity_board/models/auth_token.py
from sqlalchemy import Column, Integer, String, ForeignKey, TIMESTAMP, func
from sqlalchemy.orm import relationship
from opportunity_board.database import Base


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    token = Column(String(128), nullable=False, index=True)
    expires = Column(TIMESTAMP, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    user = relationship("User")


class TwoFactorToken(Base):
    __tablename__ = "two_factor_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(8), nullable=False)
    expires = Column(TIMESTAMP, nullable=False)
    failed_attempts = Column(Integer, default=0, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    user = relationship("User")
