"""Transition rules for the approval, contract and visit state machines.

Every legality decision about a status change lives here; services call
these checks before issuing the matching conditional update.
"""
from __future__ import annotations

from datetime import date

from ..core.errors import InvalidStateError, ValidationError
from ..models.contract import (
    SIGNABLE_STATUSES,
    TERMINAL_STATUSES,
    Contract,
    ContractStatus,
    ContractType,
)
from ..models.property import ApprovalStatus, AvailabilityStatus, Property, TransactionType
from ..models.user import User
from ..models.visit import Visit, VisitStatus
from ..repositories.contracts import COUNTERPARTY_ROLE, OWNER_ROLE

MANUAL_AVAILABILITY = frozenset({AvailabilityStatus.AVAILABLE, AvailabilityStatus.UNAVAILABLE})


# Approval workflow


def ensure_pending(prop: Property) -> None:
    if prop.approval_status != ApprovalStatus.PENDING:
        raise InvalidStateError(f"Property {prop.id} was already {prop.approval_status.value}")


def ensure_rejection_acknowledgeable(prop: Property) -> None:
    if prop.approval_status != ApprovalStatus.REJECTED:
        raise InvalidStateError(f"Property {prop.id} is {prop.approval_status.value}, not rejected")


def ensure_editable(prop: Property) -> None:
    """An unacknowledged rejection locks the listing until the owner reads it."""

    if prop.approval_status == ApprovalStatus.REJECTED and not prop.rejection_acknowledged:
        raise InvalidStateError("Acknowledge the rejection message before editing this property")


def resubmission_values() -> dict[str, object]:
    """Fields every edit resets so the listing goes back to moderation."""

    return {
        "approval_status": ApprovalStatus.PENDING,
        "rejection_message": None,
        "rejection_acknowledged": False,
    }


def ensure_manual_availability(prop: Property, target: AvailabilityStatus) -> None:
    """Owners may only toggle between available and unavailable."""

    if target not in MANUAL_AVAILABILITY:
        raise ValidationError(f"Availability '{target.value}' is set by the contract workflow only")
    if prop.availability_status not in MANUAL_AVAILABILITY:
        raise InvalidStateError(
            f"Property {prop.id} is {prop.availability_status.value}; availability follows its contract"
        )


# Contract workflow


def contract_type_for(prop: Property) -> ContractType:
    if prop.transaction_type == TransactionType.RENT:
        return ContractType.RENTAL
    return ContractType.SALE


def ensure_contractable(prop: Property) -> None:
    """A new contract needs an approved listing that is still on the market."""

    if prop.approval_status != ApprovalStatus.APPROVED:
        raise InvalidStateError(f"Property {prop.id} is not approved for listing")
    if prop.availability_status == AvailabilityStatus.UNAVAILABLE:
        raise InvalidStateError(f"Property {prop.id} is marked unavailable")


def validate_terms(
    contract_type: ContractType,
    *,
    value: object,
    start_date: date | None,
    end_date: date | None,
) -> None:
    problems: list[str] = []
    if value is None or value <= 0:  # type: ignore[operator]
        problems.append("value must be greater than zero")
    if start_date is None:
        problems.append("start_date is required")
    if contract_type == ContractType.RENTAL:
        if end_date is None:
            problems.append("end_date is required for rental contracts")
        elif start_date is not None and end_date <= start_date:
            problems.append("end_date must be after start_date")
    elif end_date is not None:
        problems.append("sale contracts do not take an end_date")
    if problems:
        raise ValidationError("; ".join(problems))


def is_terminal(status: ContractStatus) -> bool:
    return status in TERMINAL_STATUSES


def has_signed(contract: Contract, role: str) -> bool:
    if role == OWNER_ROLE:
        return contract.owner_signed_at is not None
    return contract.counterparty_signed_at is not None


def ensure_can_sign(contract: Contract, role: str) -> None:
    if contract.status not in SIGNABLE_STATUSES:
        raise InvalidStateError(f"Contract {contract.id} is {contract.status.value} and cannot be signed")
    if has_signed(contract, role):
        raise InvalidStateError(f"The {role} has already signed contract {contract.id}")


def status_after_signature(status: ContractStatus, role: str, other_signed: bool) -> ContractStatus:
    """Mirror of the status expression the signature UPDATE evaluates in the store."""

    if status not in SIGNABLE_STATUSES:
        raise InvalidStateError(f"Contract is {status.value} and cannot be signed")
    if other_signed:
        return ContractStatus.ACTIVE
    if role == OWNER_ROLE:
        return ContractStatus.SIGNED_BY_OWNER
    if role == COUNTERPARTY_ROLE:
        return ContractStatus.SIGNED_BY_COUNTERPARTY
    raise ValueError(f"Unknown contract role: {role}")


def ensure_cancellable(contract: Contract) -> None:
    if is_terminal(contract.status):
        raise InvalidStateError(f"Contract {contract.id} is already {contract.status.value}")


def ensure_completable(contract: Contract, *, today: date, by_admin: bool) -> None:
    """Only rentals run out; an active sale stays the record behind a sold property."""

    if contract.status != ContractStatus.ACTIVE:
        raise InvalidStateError(f"Only active contracts can be completed; {contract.id} is {contract.status.value}")
    if contract.type == ContractType.SALE:
        raise InvalidStateError(f"Sale contract {contract.id} stays active as the record of the sale")
    if (
        not by_admin
        and contract.end_date is not None
        and contract.end_date > today
    ):
        raise InvalidStateError(f"Rental contract {contract.id} runs until {contract.end_date.isoformat()}")


def availability_on_activation(contract_type: ContractType) -> AvailabilityStatus:
    if contract_type == ContractType.RENTAL:
        return AvailabilityStatus.RENTED
    return AvailabilityStatus.SOLD


def missing_identity_documents(owner: User, counterparty: User) -> list[str]:
    """Roles whose identity document must be recorded before they can sign."""

    missing = []
    if not owner.bi:
        missing.append(OWNER_ROLE)
    if not counterparty.bi:
        missing.append(COUNTERPARTY_ROLE)
    return missing


# Visits


def ensure_visit_scheduled(visit: Visit) -> None:
    if visit.status != VisitStatus.SCHEDULED:
        raise InvalidStateError(f"Visit {visit.id} is already {visit.status.value}")
