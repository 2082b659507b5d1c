"""Authorization rules as pure functions over users, properties and contracts."""
from __future__ import annotations

from ..models.contract import Contract
from ..models.property import ApprovalStatus, AvailabilityStatus, Property
from ..models.user import User, UserRole, UserStatus
from ..repositories.contracts import COUNTERPARTY_ROLE, OWNER_ROLE

LISTING_ROLES = frozenset({UserRole.OWNER, UserRole.BROKER, UserRole.ADMIN})


def role_set(user: User) -> frozenset[UserRole]:
    """Roles as enum members; unknown tags are ignored."""

    known = {member.value: member for member in UserRole}
    return frozenset(known[str(tag)] for tag in (user.roles or []) if str(tag) in known)


def has_role(user: User, role: UserRole) -> bool:
    return role in role_set(user)


def is_blocked(user: User) -> bool:
    return user.status == UserStatus.BLOCKED


def is_publicly_visible(prop: Property) -> bool:
    return (
        prop.approval_status == ApprovalStatus.APPROVED
        and prop.availability_status == AvailabilityStatus.AVAILABLE
    )


def can_approve(user: User) -> bool:
    """Only administrators moderate listings."""

    return has_role(user, UserRole.ADMIN)


def can_list_property(user: User) -> bool:
    """Owners and brokers submit listings; admins may do so on their behalf."""

    return bool(role_set(user) & LISTING_ROLES)


def is_owner_of(user: User, prop: Property) -> bool:
    return prop.owner_id == user.id


def can_manage_property(user: User, prop: Property) -> bool:
    return is_owner_of(user, prop) or can_approve(user)


def can_view_property(user: User | None, prop: Property) -> bool:
    """Non-owners only see approved listings that are currently available."""

    if is_publicly_visible(prop):
        return True
    if user is None:
        return False
    return can_manage_property(user, prop)


def contract_role(user: User, contract: Contract) -> str | None:
    """Return the role the user holds on the contract, or ``None``."""

    if contract.owner_id == user.id:
        return OWNER_ROLE
    if contract.counterparty_id == user.id:
        return COUNTERPARTY_ROLE
    return None


def can_view_contract(user: User, contract: Contract) -> bool:
    return contract_role(user, contract) is not None or can_approve(user)


def can_cancel_contract(user: User, contract: Contract) -> bool:
    """Either party or an administrator may cancel."""

    return can_view_contract(user, contract)


def can_complete_contract(user: User, contract: Contract) -> bool:
    return contract.owner_id == user.id or can_approve(user)


def can_list_contracts_of(user: User, target_user_id: str) -> bool:
    return user.id == target_user_id or can_approve(user)


def can_cancel_visit(user: User, client_id: str, prop: Property) -> bool:
    """The requesting client, the listing's owner or an administrator."""

    return user.id == client_id or can_manage_property(user, prop)


def can_complete_visit(user: User, prop: Property) -> bool:
    return can_manage_property(user, prop)
