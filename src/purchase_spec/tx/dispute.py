"""Dispute calls: commit, forfeit, counter and open.

A disputed purchase holds the price plus one matching stake from each side
that engaged. ``OPEN_COMMITMENT`` settles the whole escrow on a coin flip
between the seller's clear bit and the buyer's committed bit.
"""

from __future__ import annotations

import logging
from copy import deepcopy

from ..config import COMMITMENT_SIZE, NONCE_SIZE
from ..crypto.commitment import coin_flip_winner, verify_opening
from ..errors import ErrorCode, SpecError
from ..ledger import deposit, disburse
from ..store import get_purchase
from ..transitions import enter, require_transition
from ..types import Call, CallType, Role, StoreState
from . import payload as pl

logger = logging.getLogger(__name__)


def verify(state: StoreState, call: Call) -> None:
    p = call.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "dispute payload must be dict")

    ct = call.call_type
    if ct == CallType.DISPUTE_DELIVERY:
        _verify_dispute(state, call, p)
    elif ct == CallType.FORFEIT_DISPUTE:
        _verify_forfeit(state, call, p)
    elif ct == CallType.COUNTER_DISPUTE:
        _verify_counter(state, call, p)
    elif ct == CallType.OPEN_COMMITMENT:
        _verify_open(state, call, p)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported dispute call type: {ct}")


def apply(state: StoreState, call: Call) -> StoreState:
    p = call.payload
    ct = call.call_type
    if ct == CallType.DISPUTE_DELIVERY:
        return _apply_dispute(state, call, p)
    elif ct == CallType.FORFEIT_DISPUTE:
        return _apply_forfeit(state, call, p)
    elif ct == CallType.COUNTER_DISPUTE:
        return _apply_counter(state, call, p)
    elif ct == CallType.OPEN_COMMITMENT:
        return _apply_open(state, call, p)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported dispute call type: {ct}")


# --- DISPUTE_DELIVERY ---

def _verify_dispute(state: StoreState, call: Call, p: dict) -> None:
    purchase = get_purchase(state, pl.purchase_id(p))
    require_transition(state, purchase, call.call_type, call.source)
    pl.fixed_bytes(p, "commitment", COMMITMENT_SIZE)
    pl.require_value(state, call, purchase.value)


def _apply_dispute(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    purchase = ns.contracts[pl.purchase_id(p)]
    rule = require_transition(ns, purchase, call.call_type, call.source)
    deposit(ns, purchase, call.source, call.value)
    purchase.commit = pl.fixed_bytes(p, "commitment", COMMITMENT_SIZE)
    enter(purchase, rule, ns.global_state.timestamp)
    return ns


# --- FORFEIT_DISPUTE ---

def _verify_forfeit(state: StoreState, call: Call, p: dict) -> None:
    purchase = get_purchase(state, pl.purchase_id(p))
    require_transition(state, purchase, call.call_type, call.source)
    pl.require_value(state, call, 0)


def _apply_forfeit(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    purchase = ns.contracts[pl.purchase_id(p)]
    rule = require_transition(ns, purchase, call.call_type, call.source)
    disburse(ns, purchase, purchase.buyer)
    enter(purchase, rule, ns.global_state.timestamp)
    return ns


# --- COUNTER_DISPUTE ---

def _verify_counter(state: StoreState, call: Call, p: dict) -> None:
    purchase = get_purchase(state, pl.purchase_id(p))
    require_transition(state, purchase, call.call_type, call.source)
    pl.bit(p)
    pl.require_value(state, call, purchase.value)


def _apply_counter(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    purchase = ns.contracts[pl.purchase_id(p)]
    rule = require_transition(ns, purchase, call.call_type, call.source)
    deposit(ns, purchase, call.source, call.value)
    purchase.seller_bit = pl.bit(p)
    enter(purchase, rule, ns.global_state.timestamp)
    return ns


# --- OPEN_COMMITMENT ---

def _verify_open(state: StoreState, call: Call, p: dict) -> None:
    pid = pl.purchase_id(p)
    purchase = get_purchase(state, pid)
    require_transition(state, purchase, call.call_type, call.source)
    revealed = pl.bit(p)
    nonce = pl.fixed_bytes(p, "nonce", NONCE_SIZE)
    pl.require_value(state, call, 0)
    if purchase.commit is None:
        raise SpecError(ErrorCode.COMMITMENT_MISMATCH, "no commitment stored")
    if not verify_opening(purchase.commit, revealed, pid, nonce):
        raise SpecError(ErrorCode.COMMITMENT_MISMATCH, "opening does not match commitment")


def _apply_open(state: StoreState, call: Call, p: dict) -> StoreState:
    ns = deepcopy(state)
    pid = pl.purchase_id(p)
    purchase = ns.contracts[pid]
    rule = require_transition(ns, purchase, call.call_type, call.source)

    # Settle on the bit just opened, never on a previously stored default.
    purchase.buyer_bit = pl.bit(p)
    winner = coin_flip_winner(purchase.seller_bit, purchase.buyer_bit)
    recipient = ns.seller if winner == Role.SELLER else purchase.buyer
    amount = disburse(ns, purchase, recipient)
    logger.debug(f"purchase {pid.hex()[:16]} coin flip won by {winner.value} ({amount})")

    enter(purchase, rule, ns.global_state.timestamp)
    return ns
