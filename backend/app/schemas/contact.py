from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.contact_message import MessageStatus


class ContactCreate(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=50)
    message: str = Field(min_length=5, max_length=5000)


class ContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: EmailStr
    phone: Optional[str] = None
    message: str
    status: MessageStatus
    created_at: datetime
    read_at: Optional[datetime] = None
    replied_at: Optional[datetime] = None


class PendingContactOut(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    message_preview: str
    status: MessageStatus
    created_at: datetime
