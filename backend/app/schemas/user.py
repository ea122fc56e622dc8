from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.user import Role


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: Role
    created_at: datetime
    last_signed_in: datetime


class RoleUpdate(BaseModel):
    role: Role


class RoleActivity(BaseModel):
    role: Role
    total_users: int
    active_today: int
    active_week: int
    active_month: int
