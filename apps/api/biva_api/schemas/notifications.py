"""Schemas for in-app notifications."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..models.notification import NotificationKind


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: NotificationKind
    title: str
    message: str
    property_id: str | None = None
    contract_id: str | None = None
    read: bool = False
    created_at: datetime | None = None


class NotificationListResponse(BaseModel):
    results: list[NotificationRead]
