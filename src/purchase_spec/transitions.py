"""Purchase state machine: who may move a purchase from where to where.

Every guarded operation has exactly one entry per authorized role. A call
is accepted only if the caller holds that role for the purchase and the
purchase is in one of the listed source states.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import ErrorCode, SpecError
from .types import CallType, Purchase, PurchaseState, Role, StoreState

S = PurchaseState


@dataclass(frozen=True)
class Transition:
    role: Role
    sources: frozenset[PurchaseState]
    target: Optional[PurchaseState]


def _t(role: Role, sources: set[PurchaseState], target: Optional[PurchaseState]) -> Transition:
    return Transition(role=role, sources=frozenset(sources), target=target)


# Catalog and key updates are store-wide and carry no purchase state.
TRANSITIONS: dict[tuple[CallType, Role], Transition] = {
    (CallType.REQUEST_PURCHASE, Role.BUYER): _t(Role.BUYER, {S.NULL}, S.REQUESTED),
    (CallType.ABORT, Role.BUYER): _t(Role.BUYER, {S.REQUESTED}, S.FAILED),
    (CallType.REJECT_CONTRACT, Role.SELLER): _t(Role.SELLER, {S.REQUESTED}, S.REJECTED),
    (CallType.ACCEPT_CONTRACT, Role.SELLER): _t(Role.SELLER, {S.REQUESTED}, S.ACCEPTED),
    (CallType.ITEM_WAS_DELIVERED, Role.SELLER): _t(Role.SELLER, {S.ACCEPTED}, S.DELIVERED),
    (CallType.CONFIRM_DELIVERY, Role.BUYER): _t(Role.BUYER, {S.DELIVERED}, S.COMPLETED),
    (CallType.DISPUTE_DELIVERY, Role.BUYER): _t(Role.BUYER, {S.DELIVERED}, S.DISPUTE),
    (CallType.FORFEIT_DISPUTE, Role.SELLER): _t(Role.SELLER, {S.DISPUTE}, S.FAILED),
    (CallType.COUNTER_DISPUTE, Role.SELLER): _t(Role.SELLER, {S.DISPUTE}, S.COUNTER),
    (CallType.OPEN_COMMITMENT, Role.BUYER): _t(Role.BUYER, {S.COUNTER}, S.FAILED),
    (CallType.CALL_TIMEOUT, Role.BUYER): _t(Role.BUYER, {S.ACCEPTED, S.DISPUTE}, S.FAILED),
    (CallType.CALL_TIMEOUT, Role.SELLER): _t(Role.SELLER, {S.DELIVERED, S.COUNTER}, S.COMPLETED),
    (CallType.UPDATE_LISTING, Role.SELLER): _t(Role.SELLER, set(), None),
    (CallType.UPDATE_PUBLIC_KEY, Role.SELLER): _t(Role.SELLER, set(), None),
}

STORE_CALLS = frozenset({CallType.UPDATE_LISTING, CallType.UPDATE_PUBLIC_KEY})


def caller_role(state: StoreState, purchase: Purchase, call_type: CallType, source: bytes) -> Optional[Role]:
    if source == state.seller:
        return Role.SELLER
    if call_type == CallType.REQUEST_PURCHASE:
        # Anyone but the seller may open a purchase.
        return Role.BUYER
    if purchase.buyer and source == purchase.buyer:
        return Role.BUYER
    return None


def require_transition(
    state: StoreState, purchase: Purchase, call_type: CallType, source: bytes
) -> Transition:
    """Check caller role, then source state. Returns the matching rule."""
    role = caller_role(state, purchase, call_type, source)
    rule = TRANSITIONS.get((call_type, role)) if role is not None else None
    if rule is None:
        raise SpecError(ErrorCode.UNAUTHORIZED, f"caller not authorized for {call_type.value}")
    if call_type in STORE_CALLS:
        return rule
    if purchase.state not in rule.sources:
        raise SpecError(
            ErrorCode.INVALID_STATE,
            f"{call_type.value} not allowed from state {purchase.state.value}",
        )
    return rule


def enter(purchase: Purchase, rule: Transition, now: int) -> None:
    """Move ``purchase`` to the rule's target state and refresh the timeout anchor."""
    if rule.target is None:
        raise SpecError(ErrorCode.INTERNAL_ERROR, "store call has no purchase target")
    purchase.state = rule.target
    purchase.last_block = now
