import enum

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, TIMESTAMP, JSON, Enum, func
from sqlalchemy.orm import relationship
from opportunity_board.database import Base


class PrivacyLevel(str, enum.Enum):
    PUBLIC = "PUBLIC"
    FRIENDS_ONLY = "FRIENDS_ONLY"
    ONLY_ME = "ONLY_ME"


# ---------------- USER (AUTH TABLE) ----------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, default=True, nullable=False)
    bio = Column(String(500))
    profile_image = Column(String(255))

    # General visibility; field overrides below fall back to it when NULL.
    privacy_level = Column(Enum(PrivacyLevel), default=PrivacyLevel.PUBLIC, nullable=False)
    education_privacy = Column(Enum(PrivacyLevel), nullable=True)
    experience_privacy = Column(Enum(PrivacyLevel), nullable=True)
    skills_privacy = Column(Enum(PrivacyLevel), nullable=True)
    contact_url_privacy = Column(Enum(PrivacyLevel), nullable=True)

    two_factor_enabled = Column(Boolean, default=False, nullable=False)

    telegram_chat_id = Column(String(64), nullable=True, index=True)
    telegram_username = Column(String(64), nullable=True)
    telegram_bind_code = Column(String(32), nullable=True, index=True)
    telegram_bind_expiry = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    profile = relationship("UserProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    participations = relationship("Participation", back_populates="user", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


# ---------------- PROFILE TABLE ----------------
class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    headline = Column(String(150))
    location = Column(String(150))
    # Each list holds free-form entry dicts supplied by the client.
    education = Column(JSON, default=list)
    experience = Column(JSON, default=list)
    skills = Column(JSON, default=list)
    contact_urls = Column(JSON, default=list)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(
        TIMESTAMP,
        server_default=func.now(),
        onupdate=func.now()
    )

    user = relationship("User", back_populates="profile")
