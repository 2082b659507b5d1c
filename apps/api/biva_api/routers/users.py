"""Profile endpoints and administrator account management."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..dependencies.auth import get_current_user
from ..models.user import User, UserStatus
from ..schemas import users as schemas
from ..services import users as users_service

router = APIRouter()


@router.get("/me", response_model=schemas.UserRead)
async def read_me(user: User = Depends(get_current_user)) -> schemas.UserRead:
    return users_service.get_me(user)


@router.patch("/me", response_model=schemas.UserRead)
async def update_me(
    payload: schemas.ProfileUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.UserRead:
    """Update contact details or record the BI needed to sign contracts."""

    return await users_service.update_profile(payload, user, session)


@router.get("", response_model=schemas.UserListResponse)
async def list_users(
    status: UserStatus | None = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.UserListResponse:
    return await users_service.list_users(user, session, status=status)


@router.patch("/{user_id}/status", response_model=schemas.UserRead)
async def set_user_status(
    user_id: str,
    payload: schemas.UserStatusUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> schemas.UserRead:
    """Block or unblock an account (administrators only)."""

    return await users_service.set_user_status(user_id, payload, user, session)
