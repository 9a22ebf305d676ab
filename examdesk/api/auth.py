from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging
import re

from examdesk.core.config import settings
from examdesk.db.base import get_db
from examdesk.models.user import SessionToken, User
from examdesk.schemas.common import Envelope
from examdesk.schemas.user import PHONE_PATTERN, AuthPayload, OtpSent, SendOtpRequest, UserResponse
from examdesk.services.auth import (
    UploadedFile, get_current_session, get_current_user, login_or_register, logout as revoke_session
)
from examdesk.services.otp import check_rate_limit, generate_otp
from examdesk.utils.errors import RateLimitError, ValidationError
from examdesk.utils.sms import send_otp_sms

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_code_re = re.compile(rf"^[0-9]{{{settings.OTP_LENGTH}}}$")


async def _read_avatar(avatar: Optional[UploadFile], errors: Dict[str, List[str]]) -> Optional[UploadedFile]:
    if avatar is None or not avatar.filename:
        return None
    if not (avatar.content_type or "").startswith("image/"):
        errors.setdefault("avatar", []).append("Avatar must be an image")
        return None
    content = await avatar.read()
    if len(content) > settings.AVATAR_MAX_BYTES:
        errors.setdefault("avatar", []).append("Avatar is too large")
        return None
    return UploadedFile(content=content, file_name=avatar.filename, content_type=avatar.content_type)


@router.post("/send-otp", response_model=Envelope[OtpSent])
async def send_otp(payload: SendOtpRequest, db: Session = Depends(get_db)) -> Any:
    if not await check_rate_limit(db, payload.phone):
        logger.warning(f"OTP rate limit reached for phone ending {payload.phone[-4:]}")
        raise RateLimitError("Too many verification requests. Please try again later")

    otp = await generate_otp(db, payload.phone)
    await send_otp_sms(payload.phone, otp["code"])

    is_registered = db.query(User.id).filter(User.phone == payload.phone).first() is not None
    data = {"expires_at": otp["expires_at"], "is_registered": is_registered}
    if settings.OTP_EXPOSE_CODE:
        data["code"] = otp["code"]

    return {"success": True, "message": "Verification code sent", "data": data}


@router.post("/verify-otp", response_model=Envelope[AuthPayload])
async def verify_otp(
    phone: str = Form(...),
    code: str = Form(...),
    name: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
) -> Any:
    """
    Verify the code and log in, registering the phone on first use.
    name and avatar only apply when a new user is created.
    """
    errors: Dict[str, List[str]] = {}
    if not re.fullmatch(PHONE_PATTERN, phone):
        errors["phone"] = ["Phone number is not valid"]
    if not _code_re.fullmatch(code):
        errors["code"] = [f"Code must be {settings.OTP_LENGTH} digits"]
    if name is not None and len(name) > 255:
        errors["name"] = ["Name may not be longer than 255 characters"]
    uploaded = await _read_avatar(avatar, errors)
    if errors:
        raise ValidationError("Input data is not valid", errors=errors)

    user, token = await login_or_register(db, phone, code, name=name or None, avatar=uploaded)
    return {
        "success": True,
        "message": "Login successful",
        "data": {"user": user, "token": token, "token_type": "bearer"},
    }


@router.post("/logout", response_model=Envelope)
async def logout(session_token: SessionToken = Depends(get_current_session), db: Session = Depends(get_db)) -> Any:
    await revoke_session(db, session_token.id)
    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=Envelope[UserResponse])
async def read_users_me(current_user: User = Depends(get_current_user)) -> Any:
    return {"success": True, "data": current_user}
