"""Schemas for property listings and moderation."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from ..models.property import ApprovalStatus, AvailabilityStatus, PropertyCategory, TransactionType


class PropertyDraft(BaseModel):
    """Owner submission; required fields are checked by the approval workflow.

    Curation fields such as ``featured`` are set by administrators only.
    """

    title: str = ""
    description: str | None = None
    category: PropertyCategory | None = None
    transaction_type: TransactionType = TransactionType.RENT
    price: Decimal | None = None
    provincia: str = ""
    municipio: str = ""
    bairro: str | None = None
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: int = Field(default=0, ge=0)
    living_rooms: int = Field(default=0, ge=0)
    kitchens: int = Field(default=0, ge=0)
    area: int | None = Field(default=None, ge=0)
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    short_term: bool = False


class PropertyUpdate(BaseModel):
    """Partial edit; status fields are not editable here."""

    title: str | None = None
    description: str | None = None
    category: PropertyCategory | None = None
    transaction_type: TransactionType | None = None
    price: Decimal | None = None
    provincia: str | None = None
    municipio: str | None = None
    bairro: str | None = None
    bedrooms: int | None = Field(default=None, ge=0)
    bathrooms: int | None = Field(default=None, ge=0)
    living_rooms: int | None = Field(default=None, ge=0)
    kitchens: int | None = Field(default=None, ge=0)
    area: int | None = Field(default=None, ge=0)
    amenities: list[str] | None = None
    images: list[str] | None = None
    short_term: bool | None = None


class PropertyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    description: str | None = None
    category: PropertyCategory
    transaction_type: TransactionType
    price: Decimal
    provincia: str
    municipio: str
    bairro: str | None = None
    bedrooms: int = 0
    bathrooms: int = 0
    living_rooms: int = 0
    kitchens: int = 0
    area: int | None = None
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    short_term: bool = False
    featured: bool = False
    availability_status: AvailabilityStatus
    approval_status: ApprovalStatus
    rejection_message: str | None = None
    rejection_acknowledged: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RejectRequest(BaseModel):
    message: str


class AvailabilityUpdate(BaseModel):
    status: AvailabilityStatus


class FeaturedUpdate(BaseModel):
    featured: bool


class PropertyListResponse(BaseModel):
    results: list[PropertyRead]
