import logging
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import and_, func, update
from sqlalchemy.orm import Session

from examdesk.core.config import settings
from examdesk.core.security import generate_otp as generate_code
from examdesk.models.otp import OtpCode
from examdesk.schemas.user import PHONE_PATTERN
from examdesk.utils.errors import ValidationError
from examdesk.utils.time import utcnow

logger = logging.getLogger(__name__)

_phone_re = re.compile(PHONE_PATTERN)


def ensure_valid_phone(phone: Optional[str]) -> str:
    if not phone or not _phone_re.fullmatch(phone):
        raise ValidationError.for_field("phone", "Phone number is not valid")
    return phone


def _mask(phone: str) -> str:
    return f"{phone[:4]}***{phone[-2:]}"


def _rate_window_start(now: datetime) -> datetime:
    return now - timedelta(minutes=settings.OTP_RATE_WINDOW_MINUTES)


def _reclaimable(now: datetime):
    # Expired rows still inside the rate window are what check_rate_limit
    # counts, so they are kept until the window has passed them.
    return and_(OtpCode.expires_at < now, OtpCode.created_at <= _rate_window_start(now))


async def check_rate_limit(db: Session, phone: str, now: Optional[datetime] = None) -> bool:
    """
    True while fewer than OTP_RATE_LIMIT codes were issued to the phone in the
    trailing window. The window slides with ``now``.
    """
    now = now or utcnow()
    issued = (
        db.query(func.count(OtpCode.id))
        .filter(OtpCode.phone == phone, OtpCode.created_at > _rate_window_start(now))
        .scalar()
    )
    return issued < settings.OTP_RATE_LIMIT


async def generate_otp(db: Session, phone: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Issue a new code for the phone and return it with its expiry.
    Expired codes of the phone that have left the rate window are removed first.
    """
    ensure_valid_phone(phone)
    now = now or utcnow()

    db.query(OtpCode).filter(OtpCode.phone == phone, _reclaimable(now)).delete(
        synchronize_session=False
    )

    code = generate_code()
    expires_at = now + timedelta(minutes=settings.OTP_TTL_MINUTES)
    db.add(OtpCode(phone=phone, code=code, expires_at=expires_at, created_at=now, updated_at=now))
    db.commit()

    logger.info(f"Issued OTP for {_mask(phone)}, expires at {expires_at.isoformat()}")
    return {"code": code, "expires_at": expires_at}


async def verify_otp(db: Session, phone: str, code: str, now: Optional[datetime] = None) -> bool:
    """
    Consume a matching, unused, unexpired code. Returns False without side
    effects otherwise; the reason is not reported.
    """
    now = now or utcnow()
    otp = (
        db.query(OtpCode)
        .filter(
            OtpCode.phone == phone,
            OtpCode.code == code,
            OtpCode.verified_at.is_(None),
            OtpCode.expires_at > now,
        )
        .order_by(OtpCode.created_at.desc())
        .first()
    )
    if not otp:
        logger.info(f"OTP verification failed for {_mask(phone)}")
        return False

    # Claim the row only if nobody verified it in the meantime
    claimed = db.execute(
        update(OtpCode)
        .where(OtpCode.id == otp.id, OtpCode.verified_at.is_(None))
        .values(verified_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    if claimed.rowcount != 1:
        logger.info(f"OTP for {_mask(phone)} was consumed concurrently")
        return False
    return True


async def purge_expired_otps(db: Session, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    deleted = db.query(OtpCode).filter(_reclaimable(now)).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Purged {deleted} expired OTP codes")
    return deleted
