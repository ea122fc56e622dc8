from __future__ import annotations

import hmac
import logging
import secrets
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import DuplicateKeyError, ForeignKeyViolationError, NotFoundError, ValidationError
from app.crud.validation import optional_text, require_text
from app.db.types import ensure_utc, utcnow
from app.models.session import UserSession
from app.models.user import User

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    return uuid.uuid4().hex


def generate_session_token() -> str:
    return secrets.token_urlsafe(32)


def create_session(
    db: Session,
    *,
    user_id: str,
    token: str,
    expires_at: datetime,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    session_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> UserSession:
    now = ensure_utc(now or utcnow())
    token = require_text(token, "token")
    ip_address = optional_text(ip_address, "ip_address", max_length=45)
    expires_at = ensure_utc(expires_at)
    if expires_at <= now:
        raise ValidationError("Session must expire after it is created")
    if db.get(User, user_id) is None:
        raise ForeignKeyViolationError(f"User {user_id!r} does not exist")

    session_id = session_id or generate_session_id()
    if db.get(UserSession, session_id) is not None:
        raise DuplicateKeyError(f"Session id {session_id!r} is already in use")

    s = UserSession(
        id=session_id,
        user_id=user_id,
        token=token,
        expires_at=expires_at,
        created_at=now,
        last_activity_at=now,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(s)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # Either the user vanished concurrently or the id was taken.
        if db.get(User, user_id) is None:
            raise ForeignKeyViolationError(f"User {user_id!r} does not exist") from e
        raise DuplicateKeyError(f"Session id {session_id!r} is already in use") from e
    db.refresh(s)
    logger.debug("Created session %s for user %s", s.id, user_id)
    return s


def get_session(db: Session, *, session_id: str, now: Optional[datetime] = None) -> Optional[UserSession]:
    """Return the session unless it is unknown or already expired."""
    now = ensure_utc(now or utcnow())
    stmt = select(UserSession).where(
        UserSession.id == session_id,
        UserSession.expires_at > now,
    )
    return db.execute(stmt).scalar_one_or_none()


def authenticate_session(
    db: Session,
    *,
    session_id: str,
    token: str,
    now: Optional[datetime] = None,
) -> Optional[UserSession]:
    s = get_session(db, session_id=session_id, now=now)
    if s is None:
        return None
    if not hmac.compare_digest(s.token.encode("utf-8"), token.encode("utf-8")):
        return None
    return s


def touch_session(db: Session, *, session_id: str, now: Optional[datetime] = None) -> UserSession:
    now = ensure_utc(now or utcnow())
    s = get_session(db, session_id=session_id, now=now)
    if s is None:
        raise NotFoundError("Session not found")
    s.last_activity_at = now
    db.commit()
    return s


def revoke_session(db: Session, *, session_id: str) -> bool:
    s = db.get(UserSession, session_id)
    if s is None:
        return False
    db.delete(s)
    db.commit()
    logger.debug("Revoked session %s", session_id)
    return True


def list_sessions_for_user(
    db: Session,
    *,
    user_id: str,
    now: Optional[datetime] = None,
) -> list[UserSession]:
    now = ensure_utc(now or utcnow())
    stmt = (
        select(UserSession)
        .where(UserSession.user_id == user_id, UserSession.expires_at > now)
        .order_by(UserSession.created_at.desc())
    )
    return list(db.execute(stmt).scalars().all())


def sweep_expired_sessions(db: Session, *, now: Optional[datetime] = None) -> int:
    """Delete every session whose expiry lies strictly in the past."""
    now = ensure_utc(now or utcnow())
    result = db.execute(
        delete(UserSession)
        .where(UserSession.expires_at < now)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.expire_all()
    return result.rowcount or 0
