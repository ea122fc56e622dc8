from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.crud.session import authenticate_session, touch_session
from app.db.session import get_db
from app.models.session import UserSession
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def format_bearer(session_id: str, token: str) -> str:
    return f"{session_id}.{token}"


def parse_bearer(credentials: str) -> tuple[str, str]:
    session_id, sep, token = credentials.partition(".")
    if not sep or not session_id or not token:
        raise ValueError("malformed session credentials")
    return session_id, token


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()[:45] or None
    return request.client.host if request.client else None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> UserSession:
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        session_id, token = parse_bearer(credentials.credentials)
    except ValueError:
        raise _unauthorized("Invalid session credentials")

    s = authenticate_session(db, session_id=session_id, token=token)
    if s is None:
        raise _unauthorized("Session expired or invalid")
    try:
        return touch_session(db, session_id=s.id)
    except NotFoundError:
        # Expired or revoked between the lookup and the touch.
        raise _unauthorized("Session expired or invalid")


def get_current_user(
    current_session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> User:
    user = db.get(User, current_session.user_id)
    if user is None:
        raise _unauthorized("Session expired or invalid")
    return user


def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")
    return current_user
