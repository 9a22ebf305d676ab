from sqlalchemy import Column, String, DateTime, Index
import uuid

from examdesk.db.base import Base
from examdesk.utils.time import utcnow


class OtpCode(Base):
    __tablename__ = "otp_codes"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    # Not unique: a phone may hold several outstanding codes
    phone = Column(String(20), nullable=False)
    code = Column(String(10), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_otp_codes_phone_code", "phone", "code"),
        Index("ix_otp_codes_phone_created_at", "phone", "created_at"),
    )
