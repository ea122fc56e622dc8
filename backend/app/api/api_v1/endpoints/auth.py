from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api import deps
from app.core.config import settings
from app.core.errors import DuplicateKeyError
from app.crud.audit_log import write_audit_entry
from app.crud.session import create_session, generate_session_token, revoke_session
from app.crud.user import create_user, get_user_by_id, record_sign_in
from app.db.session import get_db
from app.db.types import utcnow
from app.models.session import UserSession
from app.models.user import Role
from app.schemas.session import LoginRequest, SessionIssued, SessionOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_SESSION_ID_ATTEMPTS = 3


@router.post("/login", response_model=SessionIssued)
def login(login_in: LoginRequest, request: Request, db: Session = Depends(get_db)) -> SessionIssued:
    """Placeholder sign-in: trusts the identity handed over by the login page.

    Admin accounts never sign in here; their sessions are issued with
    ``leanlia issue-session``.
    """
    user = get_user_by_id(db, login_in.user_id)
    if user is not None and user.role == Role.admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin accounts cannot sign in through this page",
        )
    if user is None:
        user = create_user(
            db,
            user_id=login_in.user_id,
            name=login_in.name,
            email=login_in.email,
            login_method=login_in.login_method,
        )
    user = record_sign_in(db, user)

    ip = deps.client_ip(request)
    user_agent = request.headers.get("user-agent")
    token = generate_session_token()

    for attempt in range(_SESSION_ID_ATTEMPTS):
        now = utcnow()
        try:
            s = create_session(
                db,
                user_id=user.id,
                token=token,
                expires_at=now + timedelta(minutes=settings.SESSION_EXPIRE_MINUTES),
                ip_address=ip,
                user_agent=user_agent,
                now=now,
            )
            break
        except DuplicateKeyError:
            if attempt == _SESSION_ID_ATTEMPTS - 1:
                raise
            logger.warning("Session id collision, retrying with a new id")

    write_audit_entry(db, user_id=user.id, action="login", entity="session", entity_id=s.id, ip_address=ip)
    return SessionIssued(
        session=SessionOut.model_validate(s),
        access_token=deps.format_bearer(s.id, token),
    )


@router.post("/logout")
def logout(
    request: Request,
    current_session: UserSession = Depends(deps.get_current_session),
    db: Session = Depends(get_db),
) -> dict[str, bool]:
    user_id = current_session.user_id
    session_id = current_session.id
    revoke_session(db, session_id=session_id)
    write_audit_entry(
        db,
        user_id=user_id,
        action="logout",
        entity="session",
        entity_id=session_id,
        ip_address=deps.client_ip(request),
    )
    return {"ok": True}
