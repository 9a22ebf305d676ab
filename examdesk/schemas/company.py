from pydantic import BaseModel, EmailStr, Field, HttpUrl
from typing import Optional
from datetime import datetime

from examdesk.models.company import CompanyStatus, ManagerStatus
from examdesk.schemas.user import PHONE_PATTERN, UserResponse


class CompanyBase(BaseModel):
    legal_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    website: Optional[HttpUrl] = None
    description: Optional[str] = None


class CompanyCreate(CompanyBase):
    name: str = Field(..., min_length=1, max_length=255)


class CompanyUpdate(CompanyBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[CompanyStatus] = None


class CompanyResponse(BaseModel):
    id: str
    name: str
    legal_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    owner_id: str
    status: CompanyStatus
    owner: Optional[UserResponse] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ManagerCreate(BaseModel):
    """Registers a person (found or created by phone) as a company manager"""
    company_id: str
    phone: str = Field(..., pattern=PHONE_PATTERN)
    name: str = Field(..., min_length=1, max_length=255)
    position: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=255)


class ManagerUpdate(BaseModel):
    position: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    status: Optional[ManagerStatus] = None
    can_view_results: Optional[bool] = None


class ManagerResponse(BaseModel):
    id: str
    user_id: str
    company_id: str
    position: Optional[str] = None
    department: Optional[str] = None
    status: ManagerStatus
    exam_status: str
    can_view_results: bool
    user: Optional[UserResponse] = None
    created_at: datetime

    class Config:
        from_attributes = True
