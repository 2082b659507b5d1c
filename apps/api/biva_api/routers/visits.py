"""Visit scheduling endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..dependencies.auth import get_current_user
from ..models.user import User
from ..schemas import visits as schemas
from ..services import visits as visits_service

router = APIRouter()


@router.post("", response_model=schemas.VisitRead, status_code=status.HTTP_201_CREATED)
async def schedule_visit(
    payload: schemas.VisitRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.VisitRead:
    """Request a visit to an approved, available listing."""

    return await visits_service.schedule_visit(payload, user, session)


@router.get("", response_model=schemas.VisitListResponse)
async def list_visits(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.VisitListResponse:
    return await visits_service.list_visits(user, session)


@router.post("/{visit_id}/cancel", response_model=schemas.VisitRead)
async def cancel_visit(
    visit_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.VisitRead:
    return await visits_service.cancel_visit(visit_id, user, session)


@router.post("/{visit_id}/complete", response_model=schemas.VisitRead)
async def complete_visit(
    visit_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.VisitRead:
    return await visits_service.complete_visit(visit_id, user, session)
