import asyncio
from datetime import datetime, timedelta

import pytest

from examdesk.core.config import settings
from examdesk.models.otp import OtpCode
from examdesk.services.otp import check_rate_limit, generate_otp, purge_expired_otps, verify_otp
from examdesk.utils.errors import ValidationError

PHONE = "09123456789"
T0 = datetime(2026, 1, 1, 12, 0, 0)


def _issue(db, at, phone=PHONE):
    return asyncio.run(generate_otp(db, phone, now=at))


def test_generated_code_is_numeric_and_expires_after_ttl(db):
    otp = _issue(db, T0)
    assert len(otp["code"]) == settings.OTP_LENGTH
    assert otp["code"].isdigit()
    assert otp["expires_at"] == T0 + timedelta(minutes=settings.OTP_TTL_MINUTES)


def test_invalid_phone_is_rejected(db):
    with pytest.raises(ValidationError) as exc_info:
        _issue(db, T0, phone="12345")
    assert "phone" in exc_info.value.errors


def test_phone_with_trailing_newline_is_rejected(db):
    with pytest.raises(ValidationError):
        _issue(db, T0, phone=PHONE + "\n")


def test_rate_limit_denies_fourth_request_in_window(db):
    for minute in range(3):
        assert asyncio.run(check_rate_limit(db, PHONE, now=T0 + timedelta(minutes=minute)))
        _issue(db, T0 + timedelta(minutes=minute))

    assert not asyncio.run(check_rate_limit(db, PHONE, now=T0 + timedelta(minutes=3)))


def test_rate_limit_window_slides(db):
    for minute in range(3):
        _issue(db, T0 + timedelta(minutes=minute))

    # The first code (12:00) has left the window, the other two are still in it
    later = T0 + timedelta(minutes=60, seconds=30)
    assert asyncio.run(check_rate_limit(db, PHONE, now=later))


def test_rate_limit_is_per_phone(db):
    for minute in range(3):
        _issue(db, T0 + timedelta(minutes=minute))
    assert asyncio.run(check_rate_limit(db, "09120000000", now=T0 + timedelta(minutes=3)))


def test_housekeeping_keeps_expired_codes_inside_rate_window(db):
    _issue(db, T0)
    _issue(db, T0 + timedelta(minutes=10))
    _issue(db, T0 + timedelta(minutes=20))

    # The first two are expired but still count towards the limit
    assert db.query(OtpCode).filter(OtpCode.phone == PHONE).count() == 3
    assert not asyncio.run(check_rate_limit(db, PHONE, now=T0 + timedelta(minutes=21)))


def test_issue_then_verify_round_trip(db):
    otp = _issue(db, T0)
    assert asyncio.run(verify_otp(db, PHONE, otp["code"], now=T0 + timedelta(minutes=1)))


def test_verify_is_single_use(db):
    otp = _issue(db, T0)
    assert asyncio.run(verify_otp(db, PHONE, otp["code"], now=T0 + timedelta(minutes=1)))
    assert not asyncio.run(verify_otp(db, PHONE, otp["code"], now=T0 + timedelta(minutes=2)))


def test_verify_rejects_expired_code(db):
    otp = _issue(db, T0)
    too_late = T0 + timedelta(minutes=settings.OTP_TTL_MINUTES, seconds=1)
    assert not asyncio.run(verify_otp(db, PHONE, otp["code"], now=too_late))

    row = db.query(OtpCode).filter(OtpCode.phone == PHONE).one()
    assert row.verified_at is None


def test_verify_is_scoped_to_phone(db):
    otp = _issue(db, T0)
    assert not asyncio.run(verify_otp(db, "09120000000", otp["code"], now=T0 + timedelta(minutes=1)))


def test_verify_rejects_wrong_code(db):
    otp = _issue(db, T0)
    wrong = str((int(otp["code"]) + 1) % (10 ** settings.OTP_LENGTH)).zfill(settings.OTP_LENGTH)
    assert not asyncio.run(verify_otp(db, PHONE, wrong, now=T0 + timedelta(minutes=1)))


def test_purge_removes_only_codes_past_the_rate_window(db):
    _issue(db, T0)
    _issue(db, T0 + timedelta(minutes=50))

    removed = asyncio.run(purge_expired_otps(db, now=T0 + timedelta(minutes=61)))

    assert removed == 1
    remaining = db.query(OtpCode).all()
    assert [row.created_at for row in remaining] == [T0 + timedelta(minutes=50)]
