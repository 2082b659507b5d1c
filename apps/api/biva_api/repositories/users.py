"""User repository helpers."""
from __future__ import annotations

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import utcnow
from ..models.user import User, UserStatus


async def get_by_id(session: AsyncSession, user_id: str) -> User | None:
    """Return a user by identifier."""

    return await session.get(User, user_id)


async def get_by_phone(session: AsyncSession, phone: str) -> User | None:
    """Return the user registered with the given phone number."""

    stmt: Select[tuple[User]] = select(User).where(User.phone == phone)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_by_id_or_phone(session: AsyncSession, reference: str) -> User | None:
    """Resolve a counterparty reference that may be either an id or a phone."""

    user = await get_by_id(session, reference)
    if user is not None:
        return user
    return await get_by_phone(session, reference.strip())


async def record_bi_if_missing(session: AsyncSession, *, user_id: str, bi: str) -> bool:
    """Store the identity document only when the user has none yet."""

    stmt = (
        update(User)
        .where(User.id == user_id, User.bi.is_(None))
        .values(bi=bi, updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    result = await session.execute(stmt)
    return result.rowcount > 0


async def list_all(session: AsyncSession, *, status: UserStatus | None = None) -> list[User]:
    """Return accounts for the admin console, alphabetically."""

    stmt = select(User)
    if status is not None:
        stmt = stmt.where(User.status == status)
    stmt = stmt.order_by(User.full_name.asc(), User.id.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def set_status(session: AsyncSession, *, user_id: str, status: UserStatus) -> User | None:
    """Block or unblock an account."""

    stmt = (
        update(User)
        .where(User.id == user_id)
        .values(status=status, updated_at=utcnow())
        .returning(User)
        .execution_options(populate_existing=True, synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
