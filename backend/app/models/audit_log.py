from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, ForeignKey, Index, Integer, String, event
from sqlalchemy.orm import Mapped, mapped_column

from app.core.errors import AuditLogImmutableError
from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class AuditLogEntry(Base):
    """Append-only record of an administrative action."""

    __tablename__ = "audit_log"
    __table_args__ = (Index("idx_audit_entity", "entity", "entityId"),)

    # BIGINT on real servers, INTEGER on SQLite so rowid autoincrement works.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    user_id: Mapped[Optional[str]] = mapped_column(
        "userId",
        String(64),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column("entityId", String(64), nullable=True)
    details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column("ipAddress", String(45), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", UTCDateTime(), default=utcnow, nullable=False, index=True
    )


@event.listens_for(AuditLogEntry, "before_update")
def _reject_update(mapper, connection, target: AuditLogEntry) -> None:
    raise AuditLogImmutableError(f"Audit log entry {target.id} cannot be modified")


@event.listens_for(AuditLogEntry, "before_delete")
def _reject_delete(mapper, connection, target: AuditLogEntry) -> None:
    raise AuditLogImmutableError(f"Audit log entry {target.id} cannot be deleted")
