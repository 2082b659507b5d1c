"""Schemas for the contract lifecycle."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from ..models.contract import ContractStatus, ContractType
from .users import UserSummary


class ContractTerms(BaseModel):
    value: Decimal | None = None
    start_date: date | None = None
    end_date: date | None = None
    observations: str | None = None


class CreateContractRequest(BaseModel):
    property_id: str
    counterparty: str = Field(min_length=1, description="Counterparty phone number or user id")
    terms: ContractTerms
    owner_bi: str | None = Field(default=None, min_length=5, description="Record the caller's BI inline")


class SignContractRequest(BaseModel):
    signature: str = Field(min_length=1)


class CancelContractRequest(BaseModel):
    reason: str | None = None


class ContractRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    owner_id: str
    counterparty_id: str
    type: ContractType
    value: Decimal
    start_date: date
    end_date: date | None = None
    content: str = ""
    observations: str | None = None
    status: ContractStatus
    owner_signed_at: datetime | None = None
    counterparty_signed_at: datetime | None = None
    cancelled_by_id: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    owner: UserSummary | None = None
    counterparty: UserSummary | None = None
    missing_identity_documents: list[str] = Field(default_factory=list)


class ContractListResponse(BaseModel):
    results: list[ContractRead]
