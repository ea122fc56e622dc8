from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class MessageStatus(str, enum.Enum):
    new = "new"
    read = "read"
    replied = "replied"
    archived = "archived"


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[MessageStatus] = mapped_column(
        Enum(MessageStatus, name="message_status", values_callable=lambda e: [m.value for m in e]),
        default=MessageStatus.new,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", UTCDateTime(), default=utcnow, nullable=False, index=True
    )
    # Set once, on the first transition that reaches them.
    read_at: Mapped[Optional[datetime]] = mapped_column("readAt", UTCDateTime(), nullable=True)
    replied_at: Mapped[Optional[datetime]] = mapped_column("repliedAt", UTCDateTime(), nullable=True)
