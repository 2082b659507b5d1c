"""Rental and sale contract model."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
import enum
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Index, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, enum_column_type, utcnow

if TYPE_CHECKING:
    from .property import Property
    from .user import User


class ContractType(str, enum.Enum):
    RENTAL = "rental"
    SALE = "sale"


class ContractStatus(str, enum.Enum):
    PENDING_SIGNATURES = "pending_signatures"
    SIGNED_BY_OWNER = "signed_by_owner"
    SIGNED_BY_COUNTERPARTY = "signed_by_counterparty"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


LIVE_STATUSES: tuple[ContractStatus, ...] = (
    ContractStatus.PENDING_SIGNATURES,
    ContractStatus.SIGNED_BY_OWNER,
    ContractStatus.SIGNED_BY_COUNTERPARTY,
    ContractStatus.ACTIVE,
)
SIGNABLE_STATUSES: tuple[ContractStatus, ...] = LIVE_STATUSES[:3]
TERMINAL_STATUSES: tuple[ContractStatus, ...] = (ContractStatus.CANCELLED, ContractStatus.COMPLETED)

_LIVE_SQL = text("status IN ({})".format(", ".join(f"'{status.value}'" for status in LIVE_STATUSES)))


class Contract(Base):
    """Agreement binding one property, its owner account and a counterparty."""

    __tablename__ = "contracts"
    __table_args__ = (
        Index(
            "uq_contracts_live_property",
            "property_id",
            unique=True,
            postgresql_where=_LIVE_SQL,
            sqlite_where=_LIVE_SQL,
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    property_id: Mapped[str] = mapped_column(ForeignKey("properties.id", ondelete="RESTRICT"), nullable=False)
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    counterparty_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    type: Mapped[ContractType] = mapped_column(enum_column_type(ContractType, "contract_type"), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    observations: Mapped[str | None] = mapped_column(Text)
    status: Mapped[ContractStatus] = mapped_column(
        enum_column_type(ContractStatus, "contract_status"),
        default=ContractStatus.PENDING_SIGNATURES,
        nullable=False,
    )
    owner_signature: Mapped[str | None] = mapped_column(Text)
    owner_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    counterparty_signature: Mapped[str | None] = mapped_column(Text)
    counterparty_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    property: Mapped["Property"] = relationship("Property", back_populates="contracts")
    owner: Mapped["User"] = relationship("User", foreign_keys=[owner_id])
    counterparty: Mapped["User"] = relationship("User", foreign_keys=[counterparty_id])
