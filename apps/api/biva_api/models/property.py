"""Property listing model."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
import enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, enum_column_type, utcnow

if TYPE_CHECKING:
    from .contract import Contract
    from .user import User


class PropertyCategory(str, enum.Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    COMMERCIAL = "commercial"
    LAND = "land"


class TransactionType(str, enum.Enum):
    RENT = "rent"
    SALE = "sale"


class AvailabilityStatus(str, enum.Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    SOLD = "sold"
    UNAVAILABLE = "unavailable"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Property(Base):
    """Listing submitted by an owner or broker account.

    ``availability_status`` and ``approval_status`` are independent axes; both
    are written only by the workflow services.
    """

    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[PropertyCategory] = mapped_column(
        enum_column_type(PropertyCategory, "property_category"), nullable=False
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        enum_column_type(TransactionType, "transaction_type"), nullable=False
    )
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    provincia: Mapped[str] = mapped_column(String, nullable=False)
    municipio: Mapped[str] = mapped_column(String, nullable=False)
    bairro: Mapped[str | None] = mapped_column(String)
    bedrooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    living_rooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    kitchens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    area: Mapped[int | None] = mapped_column(Integer)
    amenities: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    images: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    short_term: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    availability_status: Mapped[AvailabilityStatus] = mapped_column(
        enum_column_type(AvailabilityStatus, "availability_status"),
        default=AvailabilityStatus.AVAILABLE,
        nullable=False,
    )
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        enum_column_type(ApprovalStatus, "approval_status"),
        default=ApprovalStatus.PENDING,
        nullable=False,
        index=True,
    )
    rejection_message: Mapped[str | None] = mapped_column(Text)
    rejection_acknowledged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    owner: Mapped["User"] = relationship("User", back_populates="properties")
    contracts: Mapped[list["Contract"]] = relationship("Contract", back_populates="property")
