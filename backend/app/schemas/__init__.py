from __future__ import annotations

from app.schemas.audit import AuditEntryOut
from app.schemas.contact import ContactCreate, ContactOut, PendingContactOut
from app.schemas.session import LoginRequest, SessionIssued, SessionOut
from app.schemas.user import RoleActivity, RoleUpdate, UserOut

__all__ = [
    "AuditEntryOut",
    "ContactCreate",
    "ContactOut",
    "PendingContactOut",
    "LoginRequest",
    "SessionIssued",
    "SessionOut",
    "RoleActivity",
    "RoleUpdate",
    "UserOut",
]
