from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from opportunity_board.models.opportunity import OpportunityStatus


# ======================
# ORGANIZATION SCHEMAS
# ======================

class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None


# ======================
# CATEGORY SCHEMAS
# ======================

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


# ======================
# OPPORTUNITY SCHEMAS
# ======================

class OpportunityCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    short_description: Optional[str] = Field(None, max_length=300)
    eligibility: Optional[str] = None
    application_process: Optional[str] = None
    external_link: Optional[str] = None
    category_id: int
    organization_id: int
    start_date: Optional[datetime] = None
    deadline: datetime
    end_date: Optional[datetime] = None
    status: OpportunityStatus = OpportunityStatus.ACTIVE


class OpportunityUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=300)
    eligibility: Optional[str] = None
    application_process: Optional[str] = None
    external_link: Optional[str] = None
    category_id: Optional[int] = None
    organization_id: Optional[int] = None
    start_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[OpportunityStatus] = None
    is_popular: Optional[bool] = None
    is_new: Optional[bool] = None


# ======================
# ADMIN USER SCHEMAS
# ======================

class RoleUpdate(BaseModel):
    role: str


class ActiveUpdate(BaseModel):
    is_active: bool
