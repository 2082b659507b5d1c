"""Schemas for user profiles."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..models.user import UserStatus


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    phone: str
    email: str | None = None
    roles: list[str] = Field(default_factory=list)
    bi: str | None = None
    address: str | None = None
    status: UserStatus = UserStatus.ACTIVE


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    phone: str


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1)
    email: str | None = None
    address: str | None = None
    bi: str | None = Field(default=None, min_length=5, description="BI or passport number")


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserListResponse(BaseModel):
    results: list[UserRead]
