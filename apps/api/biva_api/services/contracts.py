"""Contract lifecycle: creation, dual signature, activation, cancellation, completion.

Each operation runs in one transaction. The contract status write and the
property availability write-back either both commit or both roll back.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import NoReturn
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from ..models.base import utcnow
from ..models.contract import Contract, ContractStatus
from ..models.notification import NotificationKind
from ..models.property import AvailabilityStatus, Property
from ..models.user import User
from ..repositories import contracts as contracts_repo
from ..repositories import notifications as notifications_repo
from ..repositories import properties as properties_repo
from ..repositories import users as users_repo
from ..schemas import contracts as schemas
from ..schemas.users import UserSummary
from . import contract_text, lifecycle, policies

logger = logging.getLogger(__name__)

_READ_FIELDS = tuple(
    name
    for name in schemas.ContractRead.model_fields
    if name not in {"owner", "counterparty", "missing_identity_documents"}
)


async def create_contract(
    payload: schemas.CreateContractRequest,
    caller: User,
    session: AsyncSession,
) -> schemas.ContractRead:
    """Open a contract on an approved, available property.

    Missing identity documents do not block creation; the response lists the
    roles that must record one before they can sign.
    """

    async with session.begin():
        prop = await properties_repo.get_by_id(session, payload.property_id)
        if prop is None:
            raise NotFoundError(f"Property {payload.property_id} not found")
        if not policies.is_owner_of(caller, prop):
            raise AuthorizationError("Only the property owner can create a contract for it")

        contract_type = lifecycle.contract_type_for(prop)
        terms = payload.terms
        lifecycle.validate_terms(
            contract_type, value=terms.value, start_date=terms.start_date, end_date=terms.end_date
        )
        lifecycle.ensure_contractable(prop)

        counterparty = await users_repo.get_by_id_or_phone(session, payload.counterparty)
        if counterparty is None:
            raise NotFoundError(f"No user registered as {payload.counterparty}")
        if counterparty.id == caller.id:
            raise ValidationError("The counterparty must be a different user")
        if policies.is_blocked(counterparty):
            raise InvalidStateError(f"The account {payload.counterparty} is blocked")

        if await contracts_repo.has_live_contract(session, prop.id):
            raise ConflictError(f"Property {prop.id} already has a contract in progress")
        if prop.availability_status != AvailabilityStatus.AVAILABLE:
            raise ConflictError(f"Property {prop.id} is {prop.availability_status.value}")

        if payload.owner_bi and not caller.bi:
            await users_repo.record_bi_if_missing(session, user_id=caller.id, bi=payload.owner_bi)
            caller.bi = payload.owner_bi

        contract = Contract(
            id=str(uuid4()),
            property_id=prop.id,
            owner_id=caller.id,
            counterparty_id=counterparty.id,
            type=contract_type,
            value=terms.value,
            start_date=terms.start_date,
            end_date=terms.end_date,
            observations=terms.observations,
            status=ContractStatus.PENDING_SIGNATURES,
            content=contract_text.render_contract(
                contract_type,
                prop,
                caller,
                counterparty,
                value=terms.value,
                start_date=terms.start_date,
                end_date=terms.end_date,
                issued_on=date.today(),
            ),
        )
        try:
            await contracts_repo.create(session, contract)
        except IntegrityError as exc:
            raise ConflictError(f"Property {prop.id} already has a contract in progress") from exc

        await notifications_repo.add(
            session,
            user_id=counterparty.id,
            kind=NotificationKind.CONTRACT_CREATED,
            title="New contract to sign",
            message=f"{caller.full_name} sent you a {contract_type.value} contract for '{prop.title}'.",
            property_id=prop.id,
            contract_id=contract.id,
        )

    logger.info(
        "Contract %s created for property %s (owner=%s counterparty=%s)",
        contract.id,
        prop.id,
        caller.id,
        counterparty.id,
    )
    return _to_read(contract, caller, counterparty)


async def sign_contract(
    contract_id: str,
    payload: schemas.SignContractRequest,
    signer: User,
    session: AsyncSession,
) -> schemas.ContractRead:
    """Record the signer's signature; the second signature activates the contract."""

    async with session.begin():
        contract = await _get_contract(session, contract_id)
        role = policies.contract_role(signer, contract)
        if role is None:
            raise AuthorizationError("Only the parties to a contract can sign it")
        lifecycle.ensure_can_sign(contract, role)
        if not signer.bi:
            raise PreconditionError("Missing BI/passport: record your identity document before signing")

        signed = await contracts_repo.apply_signature(
            session,
            contract_id=contract_id,
            role=role,
            signature=payload.signature,
            signed_at=utcnow(),
        )
        if signed is None:
            await _raise_for_signature(session, contract_id, role)

        owner, counterparty = await _load_parties(session, signed)
        prop = None
        if signed.status == ContractStatus.ACTIVE:
            prop = await _occupy_property(session, signed)
            for party in (owner, counterparty):
                await notifications_repo.add(
                    session,
                    user_id=party.id,
                    kind=NotificationKind.CONTRACT_ACTIVATED,
                    title="Contract active",
                    message=f"Both parties signed the contract for '{prop.title}'.",
                    property_id=signed.property_id,
                    contract_id=signed.id,
                )
        else:
            other = counterparty if role == contracts_repo.OWNER_ROLE else owner
            await notifications_repo.add(
                session,
                user_id=other.id,
                kind=NotificationKind.CONTRACT_SIGNED,
                title="Contract signed",
                message=f"{signer.full_name} signed the contract; your signature is pending.",
                property_id=signed.property_id,
                contract_id=signed.id,
            )

    logger.info("Contract %s signed by %s (%s); status=%s", contract_id, signer.id, role, signed.status.value)
    if prop is not None:
        logger.info("Property %s is now %s", prop.id, prop.availability_status.value)
    return _to_read(signed, owner, counterparty)


async def cancel_contract(
    contract_id: str,
    payload: schemas.CancelContractRequest,
    caller: User,
    session: AsyncSession,
) -> schemas.ContractRead:
    """Cancel a live contract; cancelling an active one frees the property."""

    async with session.begin():
        contract = await _get_contract(session, contract_id)
        if not policies.can_cancel_contract(caller, contract):
            raise AuthorizationError("Only the parties or an administrator can cancel this contract")
        lifecycle.ensure_cancellable(contract)

        prior = contract.status
        cancelled = await contracts_repo.transition_status(
            session,
            contract_id=contract_id,
            expected=(prior,),
            target=ContractStatus.CANCELLED,
            values={"cancelled_by_id": caller.id, "cancellation_reason": payload.reason},
        )
        if cancelled is None:
            await _raise_for_transition(session, contract_id)

        if prior == ContractStatus.ACTIVE:
            await _release_property(session, cancelled)

        owner, counterparty = await _load_parties(session, cancelled)
        for party in (owner, counterparty):
            if party.id == caller.id:
                continue
            await notifications_repo.add(
                session,
                user_id=party.id,
                kind=NotificationKind.CONTRACT_CANCELLED,
                title="Contract cancelled",
                message=f"{caller.full_name} cancelled the contract."
                + (f" Reason: {payload.reason}" if payload.reason else ""),
                property_id=cancelled.property_id,
                contract_id=cancelled.id,
            )

    logger.info("Contract %s cancelled by %s (was %s)", contract_id, caller.id, prior.value)
    return _to_read(cancelled, owner, counterparty)


async def complete_contract(
    contract_id: str,
    caller: User,
    session: AsyncSession,
    *,
    today: date | None = None,
) -> schemas.ContractRead:
    """Close out an active rental and return the property to the market."""

    async with session.begin():
        contract = await _get_contract(session, contract_id)
        if not policies.can_complete_contract(caller, contract):
            raise AuthorizationError("Only the owner or an administrator can complete this contract")
        lifecycle.ensure_completable(
            contract, today=today or date.today(), by_admin=policies.can_approve(caller)
        )

        completed = await contracts_repo.transition_status(
            session,
            contract_id=contract_id,
            expected=(ContractStatus.ACTIVE,),
            target=ContractStatus.COMPLETED,
        )
        if completed is None:
            await _raise_for_transition(session, contract_id)

        await _release_property(session, completed)

        owner, counterparty = await _load_parties(session, completed)
        for party in (owner, counterparty):
            await notifications_repo.add(
                session,
                user_id=party.id,
                kind=NotificationKind.CONTRACT_COMPLETED,
                title="Contract completed",
                message="The contract has been closed out.",
                property_id=completed.property_id,
                contract_id=completed.id,
            )

    logger.info("Contract %s completed by %s", contract_id, caller.id)
    return _to_read(completed, owner, counterparty)


async def get_contract(contract_id: str, viewer: User, session: AsyncSession) -> schemas.ContractRead:
    contract = await _get_contract(session, contract_id)
    if not policies.can_view_contract(viewer, contract):
        raise NotFoundError(f"Contract {contract_id} not found")
    owner, counterparty = await _load_parties(session, contract)
    return _to_read(contract, owner, counterparty)


async def list_contracts_for_user(
    user_id: str,
    viewer: User,
    session: AsyncSession,
) -> schemas.ContractListResponse:
    """Contracts where the user is owner or counterparty."""

    if not policies.can_list_contracts_of(viewer, user_id):
        raise AuthorizationError("You can only list your own contracts")
    rows = await contracts_repo.list_for_user(session, user_id)
    return await _to_list(session, rows)


async def list_contracts_for_property(
    property_id: str,
    viewer: User,
    session: AsyncSession,
) -> schemas.ContractListResponse:
    """Contract history of a property, for its owner and administrators."""

    prop = await properties_repo.get_by_id(session, property_id)
    if prop is None:
        raise NotFoundError(f"Property {property_id} not found")
    if not policies.can_manage_property(viewer, prop):
        raise AuthorizationError("Only the owner or an administrator can list this property's contracts")
    rows = await contracts_repo.list_for_property(session, property_id)
    return await _to_list(session, rows)


async def _get_contract(session: AsyncSession, contract_id: str) -> Contract:
    contract = await contracts_repo.get_by_id(session, contract_id)
    if contract is None:
        raise NotFoundError(f"Contract {contract_id} not found")
    return contract


async def _load_parties(session: AsyncSession, contract: Contract) -> tuple[User, User]:
    owner = await users_repo.get_by_id(session, contract.owner_id)
    counterparty = await users_repo.get_by_id(session, contract.counterparty_id)
    if owner is None or counterparty is None:
        raise NotFoundError(f"A party of contract {contract.id} no longer exists")
    return owner, counterparty


async def _occupy_property(session: AsyncSession, contract: Contract) -> Property:
    """Take the property off the market as part of activation."""

    target = lifecycle.availability_on_activation(contract.type)
    prop = await properties_repo.transition_availability(
        session,
        property_id=contract.property_id,
        expected=(AvailabilityStatus.AVAILABLE,),
        target=target,
    )
    if prop is None:
        raise ConflictError(
            f"Property {contract.property_id} is no longer available; the signature was not recorded"
        )
    return prop


async def _release_property(session: AsyncSession, contract: Contract) -> Property:
    """Return the property to the market after an active contract ends."""

    prop = await properties_repo.transition_availability(
        session,
        property_id=contract.property_id,
        expected=(lifecycle.availability_on_activation(contract.type),),
        target=AvailabilityStatus.AVAILABLE,
    )
    if prop is None:
        raise ConflictError(f"Property {contract.property_id} is not in the state its contract expects")
    return prop


async def _raise_for_signature(session: AsyncSession, contract_id: str, role: str) -> NoReturn:
    """Explain why the signature update matched no row."""

    contract = await contracts_repo.get_by_id(session, contract_id, fresh=True)
    if contract is None:
        raise NotFoundError(f"Contract {contract_id} not found")
    lifecycle.ensure_can_sign(contract, role)
    raise ConflictError(f"Contract {contract_id} changed while signing")


async def _raise_for_transition(session: AsyncSession, contract_id: str) -> NoReturn:
    contract = await contracts_repo.get_by_id(session, contract_id, fresh=True)
    if contract is None:
        raise NotFoundError(f"Contract {contract_id} not found")
    lifecycle.ensure_cancellable(contract)
    raise ConflictError(f"Contract {contract_id} changed concurrently (now {contract.status.value})")


async def _to_list(session: AsyncSession, rows: list[Contract]) -> schemas.ContractListResponse:
    results = []
    for contract in rows:
        owner, counterparty = await _load_parties(session, contract)
        results.append(_to_read(contract, owner, counterparty))
    return schemas.ContractListResponse(results=results)


def _to_read(contract: Contract, owner: User, counterparty: User) -> schemas.ContractRead:
    return schemas.ContractRead(
        **{name: getattr(contract, name) for name in _READ_FIELDS},
        owner=UserSummary.model_validate(owner),
        counterparty=UserSummary.model_validate(counterparty),
        missing_identity_documents=lifecycle.missing_identity_documents(owner, counterparty),
    )
