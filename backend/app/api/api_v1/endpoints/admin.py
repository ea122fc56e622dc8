from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.api import deps
from app.crud.audit_log import list_audit_entries, write_audit_entry
from app.crud.contact_message import (
    archive_contact_message,
    count_pending_contact_messages,
    list_contact_messages,
    list_pending_contact_messages,
    mark_contact_message_read,
    mark_contact_message_replied,
    message_preview,
)
from app.crud.session import list_sessions_for_user, sweep_expired_sessions
from app.crud.user import delete_user, get_user_by_id, list_users, set_user_role, user_activity_stats
from app.db.session import get_db
from app.models.contact_message import MessageStatus
from app.models.user import User
from app.schemas.audit import AuditEntryOut
from app.schemas.contact import ContactOut, PendingContactOut
from app.schemas.session import SessionOut
from app.schemas.user import RoleActivity, RoleUpdate, UserOut

router = APIRouter(prefix="/admin", tags=["admin"])


def _audit(
    db: Session,
    request: Request,
    admin: User,
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id: Any = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    write_audit_entry(
        db,
        user_id=admin.id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        details=details,
        ip_address=deps.client_ip(request),
    )


@router.get("/overview")
def admin_overview(
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
) -> dict[str, Any]:
    stats = user_activity_stats(db)
    return {
        "users_by_role": [RoleActivity(**row) for row in stats],
        "total_users": sum(row["total_users"] for row in stats),
        "pending_contact_messages": count_pending_contact_messages(db),
        "admin_email": current_admin.email,
    }


@router.get("/users", response_model=list[UserOut])
def admin_list_users(
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> list[UserOut]:
    return list_users(db, limit=limit, offset=offset)


@router.get("/users/{user_id}/sessions", response_model=list[SessionOut])
def admin_list_user_sessions(
    user_id: str,
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
) -> list[SessionOut]:
    if get_user_by_id(db, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    return list_sessions_for_user(db, user_id=user_id)


@router.patch("/users/{user_id}/role", response_model=UserOut)
def admin_set_user_role(
    user_id: str,
    body: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
) -> UserOut:
    if user_id == current_admin.id:
        raise HTTPException(status_code=400, detail="You cannot change your own role")

    user = set_user_role(db, user_id=user_id, role=body.role)
    _audit(db, request, current_admin, "user.role_changed", entity="user", entity_id=user.id,
           details={"role": body.role.value})
    return user


@router.delete("/users/{user_id}")
def admin_delete_user(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
) -> dict[str, bool]:
    if user_id == current_admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    ok = delete_user(db, user_id=user_id)
    if not ok:
        raise HTTPException(status_code=404, detail="User not found")
    _audit(db, request, current_admin, "user.deleted", entity="user", entity_id=user_id)
    return {"ok": True}


@router.get("/contact/pending", response_model=list[PendingContactOut])
def admin_pending_contact(
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> list[PendingContactOut]:
    return [
        PendingContactOut(
            id=cm.id,
            name=cm.name,
            email=cm.email,
            phone=cm.phone,
            message_preview=message_preview(cm),
            status=cm.status,
            created_at=cm.created_at,
        )
        for cm in list_pending_contact_messages(db, limit=limit, offset=offset)
    ]


@router.get("/contact", response_model=list[ContactOut])
def admin_list_contact(
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
    status: Optional[MessageStatus] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> list[ContactOut]:
    return list_contact_messages(db, status=status, limit=limit, offset=offset)


@router.get("/contact/{message_id}", response_model=ContactOut)
def admin_view_contact(
    message_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
) -> ContactOut:
    cm = mark_contact_message_read(db, message_id=message_id)
    _audit(db, request, current_admin, "contact.viewed", entity="contact_message", entity_id=cm.id)
    return cm


@router.post("/contact/{message_id}/reply", response_model=ContactOut)
def admin_reply_contact(
    message_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
) -> ContactOut:
    cm = mark_contact_message_replied(db, message_id=message_id)
    _audit(db, request, current_admin, "contact.replied", entity="contact_message", entity_id=cm.id)
    return cm


@router.post("/contact/{message_id}/archive", response_model=ContactOut)
def admin_archive_contact(
    message_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
) -> ContactOut:
    cm = archive_contact_message(db, message_id=message_id)
    _audit(db, request, current_admin, "contact.archived", entity="contact_message", entity_id=cm.id)
    return cm


@router.get("/audit", response_model=list[AuditEntryOut])
def admin_list_audit(
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    entity: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = Query(200, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> list[AuditEntryOut]:
    return list_audit_entries(
        db,
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        limit=limit,
        offset=offset,
    )


@router.post("/sessions/sweep")
def admin_sweep_sessions(
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(deps.get_current_admin_user),
) -> dict[str, int]:
    deleted = sweep_expired_sessions(db)
    _audit(db, request, current_admin, "sessions.swept", details={"deleted": deleted})
    return {"deleted": deleted}
