from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from examdesk.models.user import UserRole, UserStatus

PHONE_PATTERN = r"^09[0-9]{9}$"


class SendOtpRequest(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN, examples=["09123456789"])


class OtpSent(BaseModel):
    expires_at: datetime
    is_registered: bool
    # Only populated when OTP_EXPOSE_CODE is enabled
    code: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    phone: str
    name: str
    role: UserRole
    status: UserStatus
    avatar: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuthPayload(BaseModel):
    user: UserResponse
    token: str
    token_type: str = "bearer"


class TokenPayload(BaseModel):
    sub: str
    jti: str
    exp: int
