from __future__ import annotations

from app.models.audit_log import AuditLogEntry
from app.models.contact_message import ContactMessage, MessageStatus
from app.models.session import UserSession
from app.models.user import Role, User

__all__ = [
    "User",
    "Role",
    "UserSession",
    "ContactMessage",
    "MessageStatus",
    "AuditLogEntry",
]
