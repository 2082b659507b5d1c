"""Caller identity for request handlers.

Authentication itself happens upstream; the gateway forwards the account id
in ``X-User-Id`` and this module only resolves it to a user row. Blocked
accounts are refused here, before any workflow runs.
"""
from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import AuthorizationError
from ..db.session import get_session
from ..models.user import User
from ..repositories import users as users_repo
from ..services import policies

logger = logging.getLogger(__name__)


async def _load_user(session: AsyncSession, user_id: str) -> User:
    user = await users_repo.get_by_id(session, user_id)
    # End the read transaction so services can open their own with session.begin().
    await session.commit()
    if user is None:
        logger.warning("Rejected request for unknown user %s", user_id)
        raise HTTPException(status_code=401, detail="Unknown user")
    if policies.is_blocked(user):
        logger.warning("Rejected request for blocked user %s", user_id)
        raise AuthorizationError("This account is blocked")
    return user


async def get_current_user(
    x_user_id: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> User:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return await _load_user(session, x_user_id)


async def get_optional_user(
    x_user_id: str | None = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> User | None:
    """Like ``get_current_user`` but anonymous callers get ``None``."""

    if not x_user_id:
        return None
    return await _load_user(session, x_user_id)
