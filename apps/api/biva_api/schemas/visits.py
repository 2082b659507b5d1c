"""Schemas for property visits."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models.visit import VisitStatus


class VisitRequest(BaseModel):
    property_id: str
    scheduled_at: datetime = Field(description="Requested start of the visit; naive values are read as UTC")
    notes: str | None = None


class VisitRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    property_title: str | None = None
    client_id: str
    slot_start: datetime
    slot_end: datetime
    status: VisitStatus
    notes: str | None = None
    created_at: datetime | None = None


class VisitListResponse(BaseModel):
    results: list[VisitRead]
