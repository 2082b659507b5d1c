"""Profile reads and updates, plus account blocking for administrators."""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import AuthorizationError, ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..models.base import utcnow
from ..models.user import User, UserStatus
from ..repositories import users as users_repo
from ..schemas import users as schemas
from . import policies

logger = logging.getLogger(__name__)


def get_me(user: User) -> schemas.UserRead:
    return schemas.UserRead.model_validate(user)


async def update_profile(
    payload: schemas.ProfileUpdate,
    user: User,
    session: AsyncSession,
) -> schemas.UserRead:
    """Update contact details and record the identity document.

    The BI can be recorded once; a different value afterwards is refused so
    signed contracts keep pointing at the document they were signed with.
    """

    changes = {name: value for name, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    bi = changes.pop("bi", None)
    if bi is not None:
        bi = bi.strip()

    async with session.begin():
        current = await users_repo.get_by_id(session, user.id)
        if current is None:
            raise NotFoundError(f"User {user.id} not found")

        if bi and bi != current.bi:
            if current.bi:
                raise InvalidStateError("An identity document is already recorded for this account")
            if not await users_repo.record_bi_if_missing(session, user_id=current.id, bi=bi):
                raise ConflictError("The identity document was recorded concurrently")
            current.bi = bi

        for name, value in changes.items():
            setattr(current, name, value)
        if changes:
            current.updated_at = utcnow()

    logger.info("Profile of user %s updated (%s)", user.id, ", ".join(sorted(changes)) or "bi")
    return schemas.UserRead.model_validate(current)


async def list_users(
    admin: User,
    session: AsyncSession,
    *,
    status: UserStatus | None = None,
) -> schemas.UserListResponse:
    if not policies.can_approve(admin):
        raise AuthorizationError("Only administrators can list accounts")
    rows = await users_repo.list_all(session, status=status)
    return schemas.UserListResponse(results=[schemas.UserRead.model_validate(row) for row in rows])


async def set_user_status(
    user_id: str,
    payload: schemas.UserStatusUpdate,
    admin: User,
    session: AsyncSession,
) -> schemas.UserRead:
    """Block or unblock an account; blocked accounts are refused at the API edge."""

    if not policies.can_approve(admin):
        raise AuthorizationError("Only administrators can block or unblock accounts")
    if user_id == admin.id:
        raise ValidationError("Administrators cannot change the status of their own account")

    async with session.begin():
        updated = await users_repo.set_status(session, user_id=user_id, status=payload.status)
        if updated is None:
            raise NotFoundError(f"User {user_id} not found")

    logger.info("User %s marked %s by %s", user_id, payload.status.value, admin.id)
    return schemas.UserRead.model_validate(updated)
