"""Purchase lifecycle calls (request, accept/reject, delivery)."""

from __future__ import annotations

from copy import deepcopy

from ..config import MAX_NOTES_LEN
from ..crypto.hash_algorithms import purchase_id as derive_purchase_id
from ..errors import ErrorCode, SpecError
from ..ledger import deposit, disburse
from ..store import get_purchase
from ..transitions import enter, require_transition
from ..types import Call, CallType, Purchase, PurchaseState, StoreState
from . import payload as pl


def verify(state: StoreState, call: Call) -> None:
    p = call.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "purchase payload must be dict")

    ct = call.call_type
    if ct == CallType.REQUEST_PURCHASE:
        _verify_request(state, call, p)
    elif ct in (
        CallType.ABORT,
        CallType.REJECT_CONTRACT,
        CallType.ACCEPT_CONTRACT,
        CallType.ITEM_WAS_DELIVERED,
        CallType.CONFIRM_DELIVERY,
    ):
        _verify_simple(state, call, p)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported purchase call type: {ct}")


def apply(state: StoreState, call: Call) -> StoreState:
    p = call.payload
    ct = call.call_type
    if ct == CallType.REQUEST_PURCHASE:
        return _apply_request(state, call, p)
    elif ct in (CallType.ABORT, CallType.REJECT_CONTRACT):
        return _apply_refund(state, call, p)
    elif ct in (CallType.ACCEPT_CONTRACT, CallType.ITEM_WAS_DELIVERED):
        return _apply_progress(state, call, p)
    elif ct == CallType.CONFIRM_DELIVERY:
        return _apply_confirm(state, call, p)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported purchase call type: {ct}")


# --- REQUEST_PURCHASE ---

def _verify_request(state: StoreState, call: Call, p: dict) -> None:
    require_transition(state, Purchase(), CallType.REQUEST_PURCHASE, call.source)
    pid = derive_purchase_id(call.source, state.global_state.timestamp)
    if get_purchase(state, pid).state != PurchaseState.NULL:
        # Same buyer, same timestamp: refuse rather than alias two purchases.
        raise SpecError(ErrorCode.PURCHASE_EXISTS, "purchase id already in use")

    item_id = pl.integer(p, "item_id")
    pl.text(p, "notes", MAX_NOTES_LEN)
    item = state.listings.get(item_id)
    if item is None:
        raise SpecError(ErrorCode.ITEM_NOT_FOUND, f"item {item_id} not listed")

    pl.require_value(state, call, item.value)


def _apply_request(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    now = ns.global_state.timestamp
    pid = derive_purchase_id(call.source, now)
    item_id = p["item_id"]

    purchase = Purchase(
        value=ns.listings[item_id].value,
        item=item_id,
        notes=p.get("notes", ""),
        buyer=call.source,
    )
    rule = require_transition(ns, purchase, CallType.REQUEST_PURCHASE, call.source)
    deposit(ns, purchase, call.source, call.value)
    enter(purchase, rule, now)
    ns.contracts[pid] = purchase
    return ns


# --- ABORT / REJECT_CONTRACT / ACCEPT_CONTRACT / ITEM_WAS_DELIVERED / CONFIRM_DELIVERY ---

def _verify_simple(state: StoreState, call: Call, p: dict) -> None:
    pid = pl.purchase_id(p)
    require_transition(state, get_purchase(state, pid), call.call_type, call.source)
    pl.require_value(state, call, 0)


def _apply_refund(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    purchase = ns.contracts[pl.purchase_id(p)]
    rule = require_transition(ns, purchase, call.call_type, call.source)
    disburse(ns, purchase, purchase.buyer)
    enter(purchase, rule, ns.global_state.timestamp)
    return ns


def _apply_progress(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    purchase = ns.contracts[pl.purchase_id(p)]
    rule = require_transition(ns, purchase, call.call_type, call.source)
    enter(purchase, rule, ns.global_state.timestamp)
    return ns


def _apply_confirm(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    purchase = ns.contracts[pl.purchase_id(p)]
    rule = require_transition(ns, purchase, call.call_type, call.source)
    disburse(ns, purchase, ns.seller)
    enter(purchase, rule, ns.global_state.timestamp)
    return ns
