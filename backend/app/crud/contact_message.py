from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidTransitionError, NotFoundError
from app.crud.validation import normalize_email, optional_text, require_text
from app.db.types import ensure_utc, utcnow
from app.models.contact_message import ContactMessage, MessageStatus

logger = logging.getLogger(__name__)


def create_contact_message(
    db: Session,
    *,
    name: str,
    email: str,
    message: str,
    phone: Optional[str] = None,
) -> ContactMessage:
    cm = ContactMessage(
        name=require_text(name, "name", max_length=255),
        email=normalize_email(email),
        phone=optional_text(phone, "phone", max_length=50),
        message=require_text(message, "message"),
        status=MessageStatus.new,
    )
    db.add(cm)
    db.commit()
    db.refresh(cm)
    return cm


def get_contact_message(db: Session, *, message_id: int) -> Optional[ContactMessage]:
    return db.execute(
        select(ContactMessage).where(ContactMessage.id == message_id)
    ).scalar_one_or_none()


def list_contact_messages(
    db: Session,
    *,
    status: Optional[MessageStatus] = None,
    limit: int = 100,
    offset: int = 0,
) -> list[ContactMessage]:
    stmt = select(ContactMessage)
    if status is not None:
        stmt = stmt.where(ContactMessage.status == status)
    stmt = stmt.order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc())
    return list(db.execute(stmt.offset(offset).limit(limit)).scalars().all())


def list_pending_contact_messages(db: Session, *, limit: int = 100, offset: int = 0) -> list[ContactMessage]:
    return list_contact_messages(db, status=MessageStatus.new, limit=limit, offset=offset)


def count_pending_contact_messages(db: Session) -> int:
    stmt = select(func.count()).select_from(ContactMessage).where(ContactMessage.status == MessageStatus.new)
    return db.execute(stmt).scalar_one()


def message_preview(cm: ContactMessage, length: Optional[int] = None) -> str:
    return cm.message[: length or settings.CONTACT_PREVIEW_LENGTH]


def _require_message(db: Session, message_id: int) -> ContactMessage:
    cm = get_contact_message(db, message_id=message_id)
    if cm is None:
        raise NotFoundError(f"Contact message {message_id} not found")
    return cm


def mark_contact_message_read(
    db: Session,
    *,
    message_id: int,
    now: Optional[datetime] = None,
) -> ContactMessage:
    """Record that a message was viewed. Only a new message changes state."""
    cm = _require_message(db, message_id)
    if cm.status != MessageStatus.new:
        return cm

    cm.status = MessageStatus.read
    if cm.read_at is None:
        cm.read_at = ensure_utc(now or utcnow())
    db.commit()
    logger.info("Contact message %s marked read", cm.id)
    return cm


def mark_contact_message_replied(
    db: Session,
    *,
    message_id: int,
    now: Optional[datetime] = None,
) -> ContactMessage:
    cm = _require_message(db, message_id)
    if cm.status == MessageStatus.archived:
        raise InvalidTransitionError(f"Contact message {message_id} is archived")
    if cm.status == MessageStatus.replied:
        return cm

    now = ensure_utc(now or utcnow())
    # Answering a message that was never opened counts as reading it.
    if cm.read_at is None:
        cm.read_at = now
    if cm.replied_at is None:
        cm.replied_at = now
    cm.status = MessageStatus.replied
    db.commit()
    logger.info("Contact message %s marked replied", cm.id)
    return cm


def archive_contact_message(db: Session, *, message_id: int) -> ContactMessage:
    cm = _require_message(db, message_id)
    if cm.status == MessageStatus.archived:
        return cm

    cm.status = MessageStatus.archived
    db.commit()
    logger.info("Contact message %s archived", cm.id)
    return cm
