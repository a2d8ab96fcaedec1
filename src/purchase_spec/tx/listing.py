"""Seller catalog and public key calls."""

from __future__ import annotations

from copy import deepcopy

from ..config import MAX_AMOUNT, MAX_DESCRIPTION_LEN, MAX_PUBLIC_KEY_LEN, MAX_U64, PRICE_UNIT
from ..errors import ErrorCode, SpecError
from ..transitions import require_transition
from ..types import Call, CallType, Item, Purchase, StoreState
from . import payload as pl


def verify(state: StoreState, call: Call) -> None:
    p = call.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "listing payload must be dict")

    ct = call.call_type
    if ct == CallType.UPDATE_LISTING:
        _verify_update_listing(state, call, p)
    elif ct == CallType.UPDATE_PUBLIC_KEY:
        _verify_update_public_key(state, call, p)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported listing call type: {ct}")


def apply(state: StoreState, call: Call) -> StoreState:
    p = call.payload
    ct = call.call_type
    if ct == CallType.UPDATE_LISTING:
        return _apply_update_listing(state, call, p)
    elif ct == CallType.UPDATE_PUBLIC_KEY:
        return _apply_update_public_key(state, call, p)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported listing call type: {ct}")


# --- UPDATE_LISTING ---

def _verify_update_listing(state: StoreState, call: Call, p: dict) -> None:
    require_transition(state, Purchase(), call.call_type, call.source)
    item_id = pl.integer(p, "item_id")
    if item_id < 0 or item_id > MAX_U64:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "item_id out of u64 range")
    pl.text(p, "description", MAX_DESCRIPTION_LEN)
    price = pl.integer(p, "price")
    if price < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "price must be >= 0")
    if price * PRICE_UNIT > MAX_AMOUNT:
        raise SpecError(ErrorCode.OVERFLOW, "price overflow")
    pl.require_value(state, call, 0)


def _apply_update_listing(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    # Prices arrive in thousandths; open purchases keep the value they locked.
    ns.listings[p["item_id"]] = Item(
        value=p["price"] * PRICE_UNIT,
        description=p.get("description", ""),
    )
    return ns


# --- UPDATE_PUBLIC_KEY ---

def _verify_update_public_key(state: StoreState, call: Call, p: dict) -> None:
    require_transition(state, Purchase(), call.call_type, call.source)
    pl.text(p, "public_key", MAX_PUBLIC_KEY_LEN)
    pl.require_value(state, call, 0)


def _apply_update_public_key(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    ns.public_key = p.get("public_key", "")
    return ns
