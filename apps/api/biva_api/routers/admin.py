"""Moderation endpoints for administrators."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..dependencies.auth import get_current_user
from ..models.user import User
from ..schemas import properties as schemas
from ..services import approval as approval_service
from ..services import listings as listings_service

router = APIRouter()


@router.get("/properties/pending", response_model=schemas.PropertyListResponse)
async def list_pending(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyListResponse:
    """Return the moderation queue, oldest submission first."""

    return await listings_service.list_pending_properties(user, session)


@router.post("/properties/{property_id}/approve", response_model=schemas.PropertyRead)
async def approve_property(
    property_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyRead:
    return await approval_service.approve_property(property_id, user, session)


@router.post("/properties/{property_id}/reject", response_model=schemas.PropertyRead)
async def reject_property(
    property_id: str,
    payload: schemas.RejectRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyRead:
    """Reject a pending listing with a message for the owner."""

    return await approval_service.reject_property(property_id, payload, user, session)


@router.put("/properties/{property_id}/featured", response_model=schemas.PropertyRead)
async def set_featured(
    property_id: str,
    payload: schemas.FeaturedUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.PropertyRead:
    return await listings_service.set_featured(property_id, payload, user, session)
