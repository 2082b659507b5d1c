"""User account model."""
from __future__ import annotations

from datetime import datetime
import enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, enum_column_type, utcnow

if TYPE_CHECKING:
    from .property import Property


class UserRole(str, enum.Enum):
    OWNER = "owner"
    CLIENT = "client"
    BROKER = "broker"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"


class User(Base):
    """Marketplace account; phone is the primary login credential."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    roles: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    bi: Mapped[str | None] = mapped_column(String)
    address: Mapped[str | None] = mapped_column(String)
    status: Mapped[UserStatus] = mapped_column(
        enum_column_type(UserStatus, "user_status"), default=UserStatus.ACTIVE, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    properties: Mapped[list["Property"]] = relationship("Property", back_populates="owner")
