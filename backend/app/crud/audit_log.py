from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import ForeignKeyViolationError
from app.crud.validation import optional_text, require_text
from app.models.audit_log import AuditLogEntry
from app.models.user import User


def write_audit_entry(
    db: Session,
    *,
    action: str,
    user_id: Optional[str] = None,
    entity: Optional[str] = None,
    entity_id: Optional[Any] = None,
    details: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLogEntry:
    if user_id is not None and db.get(User, user_id) is None:
        raise ForeignKeyViolationError(f"User {user_id!r} does not exist")

    entry = AuditLogEntry(
        user_id=user_id,
        action=require_text(action, "action", max_length=100),
        entity=optional_text(entity, "entity", max_length=100),
        entity_id=None if entity_id is None else str(entity_id),
        details=details,
        ip_address=optional_text(ip_address, "ip_address", max_length=45),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def list_audit_entries(
    db: Session,
    *,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    entity: Optional[str] = None,
    entity_id: Optional[Any] = None,
    limit: int = 200,
    offset: int = 0,
) -> list[AuditLogEntry]:
    stmt = select(AuditLogEntry)
    if user_id is not None:
        stmt = stmt.where(AuditLogEntry.user_id == user_id)
    if action is not None:
        stmt = stmt.where(AuditLogEntry.action == action)
    if entity is not None:
        stmt = stmt.where(AuditLogEntry.entity == entity)
    if entity_id is not None:
        stmt = stmt.where(AuditLogEntry.entity_id == str(entity_id))
    stmt = stmt.order_by(AuditLogEntry.created_at, AuditLogEntry.id).offset(offset).limit(limit)
    return list(db.execute(stmt).scalars().all())
