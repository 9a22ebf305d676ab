import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from examdesk.core.security import create_access_token, decode_access_token
from examdesk.db.base import get_db
from examdesk.models.user import SessionToken, User, UserRole, UserStatus
from examdesk.schemas.user import TokenPayload
from examdesk.services.otp import ensure_valid_phone, verify_otp
from examdesk.utils.errors import AuthError, ForbiddenError
from examdesk.utils.storage import store_file
from examdesk.utils.time import utcnow

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class UploadedFile:
    content: bytes
    file_name: Optional[str] = None
    content_type: Optional[str] = None


def default_user_name(phone: str) -> str:
    return f"User {phone[-4:]}"


async def issue_session(db: Session, user: User, name: str = "auth_token") -> str:
    """Mint a new bearer token; earlier sessions of the user stay valid."""
    session_token = SessionToken(user_id=user.id, name=name)
    db.add(session_token)
    db.commit()
    db.refresh(session_token)
    return create_access_token(user.id, session_token.id)


async def login_or_register(
    db: Session,
    phone: str,
    code: str,
    name: Optional[str] = None,
    avatar: Optional[UploadedFile] = None,
) -> Tuple[User, str]:
    ensure_valid_phone(phone)

    if not await verify_otp(db, phone, code):
        raise AuthError("Verification code is invalid or expired")

    user = db.query(User).filter(User.phone == phone).first()
    if not user:
        avatar_ref = None
        if avatar and avatar.content:
            avatar_ref = await store_file(avatar.content, "avatars", avatar.file_name, avatar.content_type)

        user = User(
            phone=phone,
            name=name or default_user_name(phone),
            role=UserRole.OWNER,
            status=UserStatus.ACTIVE,
            avatar=avatar_ref,
        )
        db.add(user)
        logger.info(f"Registered new user for phone ending {phone[-4:]}")

    user.last_login = utcnow()
    db.commit()
    db.refresh(user)

    token = await issue_session(db, user)
    return user, token


async def logout(db: Session, token_id: str) -> None:
    """Revoke exactly one session."""
    db.query(SessionToken).filter(SessionToken.id == token_id).delete(synchronize_session=False)
    db.commit()


async def resolve_token(db: Session, token: str) -> Tuple[User, SessionToken]:
    try:
        token_data = TokenPayload(**decode_access_token(token))
    except ExpiredSignatureError:
        raise AuthError("Token expired")
    except (JWTError, ValueError):
        raise AuthError("Could not validate credentials")

    session_token = db.query(SessionToken).filter(SessionToken.id == token_data.jti).first()
    if not session_token or session_token.user_id != token_data.sub:
        raise AuthError("Session has been revoked")

    user = session_token.user
    if user.status != UserStatus.ACTIVE:
        raise ForbiddenError("User account is inactive")

    session_token.last_used_at = utcnow()
    db.commit()
    return user, session_token


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> SessionToken:
    if not credentials or not credentials.credentials:
        raise AuthError("Not authenticated")
    _, session_token = await resolve_token(db, credentials.credentials)
    return session_token


async def get_current_user(session_token: SessionToken = Depends(get_current_session)) -> User:
    return session_token.user
