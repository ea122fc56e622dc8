from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import deps
from app.crud.session import list_sessions_for_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.session import SessionOut
from app.schemas.user import UserOut

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserOut)
def read_me(current_user: User = Depends(deps.get_current_user)) -> UserOut:
    return current_user


@router.get("/me/sessions", response_model=list[SessionOut])
def read_my_sessions(
    current_user: User = Depends(deps.get_current_user),
    db: Session = Depends(get_db),
) -> list[SessionOut]:
    return list_sessions_for_user(db, user_id=current_user.id)
