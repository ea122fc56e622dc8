from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class Role(str, enum.Enum):
    user = "user"
    admin = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True, index=True)
    login_method: Mapped[Optional[str]] = mapped_column("loginMethod", String(64), nullable=True)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="role", values_callable=lambda e: [m.value for m in e]),
        default=Role.user,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        "createdAt", UTCDateTime(), default=utcnow, nullable=False, index=True
    )
    last_signed_in: Mapped[datetime] = mapped_column(
        "lastSignedIn", UTCDateTime(), default=utcnow, nullable=False
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin
