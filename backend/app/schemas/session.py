from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class LoginRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[EmailStr] = None
    login_method: Optional[str] = Field(default=None, max_length=64)


class SessionOut(BaseModel):
    """Public view of a session. The token is never part of it."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    expires_at: datetime
    created_at: datetime
    last_activity_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class SessionIssued(BaseModel):
    session: SessionOut
    access_token: str
    token_type: str = "bearer"
