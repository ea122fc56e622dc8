from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import DuplicateKeyError, NotFoundError, ValidationError
from app.crud.validation import normalize_email, require_text
from app.db.types import ensure_utc, utcnow
from app.models.audit_log import AuditLogEntry
from app.models.session import UserSession
from app.models.user import Role, User

logger = logging.getLogger(__name__)


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == email).order_by(User.created_at).limit(1)
    return db.execute(stmt).scalar_one_or_none()


def list_users(db: Session, *, limit: int = 100, offset: int = 0) -> list[User]:
    stmt = select(User).order_by(User.created_at.desc()).offset(offset).limit(limit)
    return list(db.execute(stmt).scalars().all())


def create_user(
    db: Session,
    *,
    user_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    login_method: Optional[str] = None,
    role: Role = Role.user,
) -> User:
    user_id = require_text(user_id, "id", max_length=64)
    if email is not None:
        email = normalize_email(email)
    if get_user_by_id(db, user_id) is not None:
        raise DuplicateKeyError(f"User {user_id!r} already exists")

    user = User(id=user_id, name=name, email=email, login_method=login_method, role=role)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateKeyError(f"User {user_id!r} already exists") from e
    db.refresh(user)
    return user


def record_sign_in(db: Session, user: User, *, now: Optional[datetime] = None) -> User:
    user.last_signed_in = ensure_utc(now or utcnow())
    db.commit()
    db.refresh(user)
    return user


def set_user_role(db: Session, *, user_id: str, role: Role) -> User:
    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id!r} not found")
    if not isinstance(role, Role):
        try:
            role = Role(role)
        except ValueError as e:
            raise ValidationError(f"Unknown role: {role!r}") from e
    user.role = role
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, *, user_id: str) -> bool:
    """Delete a user, cascading to sessions and detaching audit entries.

    The foreign keys declare the same behaviour; it is repeated here so that
    engines running without foreign-key enforcement end up in the same state.
    """
    user = get_user_by_id(db, user_id)
    if user is None:
        return False

    try:
        removed = db.execute(delete(UserSession).where(UserSession.user_id == user_id)).rowcount
        detached = db.execute(
            update(AuditLogEntry)
            .where(AuditLogEntry.user_id == user_id)
            .values(user_id=None)
            .execution_options(synchronize_session=False)
        ).rowcount
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise

    # Loaded audit entries still carry the old user id.
    db.expire_all()
    logger.info(
        "Deleted user %s (%d sessions removed, %d audit entries detached)",
        user_id,
        removed,
        detached,
    )
    return True


def user_activity_stats(db: Session, *, now: Optional[datetime] = None) -> list[dict]:
    """Per-role user counts with today / 7-day / 30-day activity."""
    now = ensure_utc(now or utcnow())
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    def _active_since(since: datetime):
        return func.count(case((User.last_signed_in >= since, 1)))

    stmt = (
        select(
            User.role,
            func.count(User.id),
            _active_since(start_of_day),
            _active_since(week_ago),
            _active_since(month_ago),
        )
        .group_by(User.role)
        .order_by(User.role)
    )
    return [
        {
            "role": role.value if isinstance(role, Role) else role,
            "total_users": total,
            "active_today": today,
            "active_week": week,
            "active_month": month,
        }
        for role, total, today, week, month in db.execute(stmt).all()
    ]
