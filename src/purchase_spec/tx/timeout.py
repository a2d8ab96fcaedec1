"""Timeout escalation call.

``CALL_TIMEOUT`` ends a stalled purchase in favour of the caller, but only
while the counterparty owes the next action and has been silent for longer
than the store timeout. Buyer: ``ACCEPTED``/``DISPUTE`` -> refund.
Seller: ``DELIVERED``/``COUNTER`` -> payment.
"""

from __future__ import annotations

from copy import deepcopy

from ..errors import ErrorCode, SpecError
from ..ledger import disburse
from ..store import get_purchase
from ..transitions import enter, require_transition
from ..types import Call, CallType, Purchase, Role, StoreState
from . import payload as pl


def timeout_elapsed(state: StoreState, purchase: Purchase) -> bool:
    return state.global_state.timestamp - purchase.last_block > state.timeout


def verify(state: StoreState, call: Call) -> None:
    p = call.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "timeout payload must be dict")
    if call.call_type != CallType.CALL_TIMEOUT:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported timeout call type: {call.call_type}")

    purchase = get_purchase(state, pl.purchase_id(p))
    require_transition(state, purchase, call.call_type, call.source)
    pl.require_value(state, call, 0)
    if not timeout_elapsed(state, purchase):
        raise SpecError(ErrorCode.TIMEOUT_NOT_YET_ELAPSED, "timeout not yet elapsed")


def apply(state: StoreState, call: Call) -> StoreState:
    ns = deepcopy(state)
    purchase = ns.contracts[pl.purchase_id(call.payload)]
    rule = require_transition(ns, purchase, call.call_type, call.source)
    recipient = ns.seller if rule.role == Role.SELLER else purchase.buyer
    disburse(ns, purchase, recipient)
    enter(purchase, rule, ns.global_state.timestamp)
    return ns
