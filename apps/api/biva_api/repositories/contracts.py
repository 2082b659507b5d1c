"""Contract persistence helpers."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import case, func, literal, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models.base import utcnow
from ..models.contract import LIVE_STATUSES, SIGNABLE_STATUSES, Contract, ContractStatus

OWNER_ROLE = "owner"
COUNTERPARTY_ROLE = "counterparty"

_status_type = Contract.__table__.c.status.type


async def get_by_id(session: AsyncSession, contract_id: str, *, fresh: bool = False) -> Contract | None:
    """Return a contract by identifier; ``fresh`` bypasses the identity map."""

    return await session.get(Contract, contract_id, populate_existing=fresh)


async def has_live_contract(session: AsyncSession, property_id: str) -> bool:
    """Return True if the property already has a non-terminal contract."""

    stmt = select(func.count(Contract.id)).where(
        Contract.property_id == property_id,
        Contract.status.in_(LIVE_STATUSES),
    )
    count = await session.execute(stmt)
    return count.scalar_one() > 0


async def create(session: AsyncSession, contract: Contract) -> Contract:
    """Persist a new contract.

    Raises ``sqlalchemy.exc.IntegrityError`` when the live-contract unique
    index rejects the row.
    """

    session.add(contract)
    await session.flush()
    return contract


async def apply_signature(
    session: AsyncSession,
    *,
    contract_id: str,
    role: str,
    signature: str,
    signed_at: datetime,
) -> Contract | None:
    """Record one party's signature and recompute the status in one statement.

    The new status is derived from the other party's signed-at column as it
    stands when the row is written, so two signers arriving in either order
    always end on ``active``. Returns ``None`` when the contract is no longer
    signable or this role has already signed.
    """

    if role == OWNER_ROLE:
        signature_col, signed_at_col = Contract.owner_signature, Contract.owner_signed_at
        other_signed_at_col = Contract.counterparty_signed_at
        single_status = ContractStatus.SIGNED_BY_OWNER
    elif role == COUNTERPARTY_ROLE:
        signature_col, signed_at_col = Contract.counterparty_signature, Contract.counterparty_signed_at
        other_signed_at_col = Contract.owner_signed_at
        single_status = ContractStatus.SIGNED_BY_COUNTERPARTY
    else:
        raise ValueError(f"Unknown contract role: {role}")

    new_status = case(
        (other_signed_at_col.is_not(None), literal(ContractStatus.ACTIVE, _status_type)),
        else_=literal(single_status, _status_type),
    )

    stmt = (
        update(Contract)
        .where(
            Contract.id == contract_id,
            Contract.status.in_(SIGNABLE_STATUSES),
            signed_at_col.is_(None),
        )
        .values(
            {
                signature_col: signature,
                signed_at_col: signed_at,
                Contract.status: new_status,
                Contract.updated_at: signed_at,
            }
        )
        .returning(Contract)
        .execution_options(populate_existing=True, synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def transition_status(
    session: AsyncSession,
    *,
    contract_id: str,
    expected: Iterable[ContractStatus],
    target: ContractStatus,
    values: dict[str, Any] | None = None,
) -> Contract | None:
    """Move a contract to ``target`` if its status is still one of ``expected``."""

    stmt = (
        update(Contract)
        .where(Contract.id == contract_id, Contract.status.in_(tuple(expected)))
        .values(status=target, updated_at=utcnow(), **(values or {}))
        .returning(Contract)
        .execution_options(populate_existing=True, synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_for_user(session: AsyncSession, user_id: str) -> list[Contract]:
    """Return contracts where the user is either party, newest first."""

    stmt = (
        select(Contract)
        .where(or_(Contract.owner_id == user_id, Contract.counterparty_id == user_id))
        .options(selectinload(Contract.owner), selectinload(Contract.counterparty))
        .order_by(Contract.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_for_property(session: AsyncSession, property_id: str) -> list[Contract]:
    """Return the full contract history of a property, newest first."""

    stmt = (
        select(Contract)
        .where(Contract.property_id == property_id)
        .options(selectinload(Contract.owner), selectinload(Contract.counterparty))
        .order_by(Contract.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
