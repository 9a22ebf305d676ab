import secrets
import string
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from jose import jwt
from passlib.context import CryptContext

from examdesk.core.config import settings
from examdesk.utils.time import utcnow

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_CREDENTIAL_ALPHABET = string.ascii_letters + string.digits


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def generate_otp(length: Optional[int] = None) -> str:
    """Uniform numeric code, left-padded with zeros."""
    length = length or settings.OTP_LENGTH
    return str(secrets.randbelow(10 ** length)).zfill(length)


def create_access_token(subject: str, token_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(subject), "jti": token_id, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    # Raises jose.JWTError (ExpiredSignatureError included) on a bad token
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def random_string(length: int) -> str:
    return "".join(secrets.choice(_CREDENTIAL_ALPHABET) for _ in range(length))


def generate_exam_credentials() -> Tuple[str, str]:
    """Return a (username, password) pair for an exam set login."""
    return f"exam_{random_string(8)}", random_string(12)
