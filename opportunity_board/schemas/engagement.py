from typing import Optional

from pydantic import BaseModel, Field

from opportunity_board.models.user import PrivacyLevel


class BookmarkToggle(BaseModel):
    bookmarked: bool


# ======================
# APPLICATION SCHEMAS
# ======================

class ApplyStatus(BaseModel):
    is_applied: bool = False
    is_confirm: bool = False


class ApplyRequest(BaseModel):
    status: ApplyStatus = ApplyStatus()
    feedback: Optional[str] = None


class ApplicationConfirm(BaseModel):
    is_applied: bool


# ======================
# PARTICIPATION SCHEMAS
# ======================

class ParticipationCreate(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    privacy_level: PrivacyLevel = PrivacyLevel.ONLY_ME
    feedback: Optional[str] = None


class ParticipationPrivacyUpdate(BaseModel):
    privacy_level: PrivacyLevel
