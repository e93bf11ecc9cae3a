from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from opportunity_board.models.user import PrivacyLevel


# ======================
# PROFILE SCHEMAS
# ======================

class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    profile_image: Optional[str] = None
    headline: Optional[str] = Field(None, max_length=150)
    location: Optional[str] = Field(None, max_length=150)
    education: Optional[List[Dict[str, Any]]] = None
    experience: Optional[List[Dict[str, Any]]] = None
    skills: Optional[List[Any]] = None
    contact_urls: Optional[List[Dict[str, Any]]] = None


class UserProfileOut(BaseModel):
    headline: Optional[str] = None
    location: Optional[str] = None
    education: List[Any] = []
    experience: List[Any] = []
    skills: List[Any] = []
    contact_urls: List[Any] = []

    model_config = ConfigDict(from_attributes=True)

    @field_validator("education", "experience", "skills", "contact_urls", mode="before")
    @classmethod
    def empty_when_missing(cls, value):
        return value or []


# ======================
# PRIVACY SCHEMAS
# ======================

class PrivacyUpdate(BaseModel):
    privacy_level: PrivacyLevel


class FieldPrivacySettings(BaseModel):
    # None falls back to the general privacy level.
    education_privacy: Optional[PrivacyLevel] = None
    experience_privacy: Optional[PrivacyLevel] = None
    skills_privacy: Optional[PrivacyLevel] = None
    contact_url_privacy: Optional[PrivacyLevel] = None

    model_config = ConfigDict(from_attributes=True)


class TelegramBindCode(BaseModel):
    code: str
    bot_link: str
    expires_at: str
