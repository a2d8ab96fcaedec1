"""Timeout escalation fixtures."""

from __future__ import annotations

from purchase_spec.crypto.commitment import make_commitment, random_nonce
from purchase_spec.errors import ErrorCode
from purchase_spec.state_transition import advance_time, apply_call
from purchase_spec.store import create_store, get_balance, purchase_id_for
from purchase_spec.test_accounts import ALICE, BOB, SELLER
from purchase_spec.types import (
    Call,
    CallType,
    Item,
    Purchase,
    PurchaseState,
    StoreState,
)

TIMEOUT = 3_600
LAST = 10_000
ITEM_ID = 3
VALUE = 100
PID = purchase_id_for(ALICE, 9_000)

_HELD = {
    PurchaseState.ACCEPTED: VALUE,
    PurchaseState.DELIVERED: VALUE,
    PurchaseState.DISPUTE: 2 * VALUE,
    PurchaseState.COUNTER: 3 * VALUE,
    PurchaseState.REQUESTED: VALUE,
}


def _stalled(status: PurchaseState, elapsed: int) -> StoreState:
    """A purchase in ``status`` whose last action was ``elapsed`` seconds ago."""
    state = create_store(
        SELLER,
        timeout=TIMEOUT,
        balances={ALICE: 1_000, SELLER: 500},
        timestamp=LAST + elapsed,
    )
    state.listings[ITEM_ID] = Item(value=VALUE, description="bike")
    state.contracts[PID] = Purchase(
        value=VALUE,
        last_block=LAST,
        item=ITEM_ID,
        commit=b"\x11" * 32 if status in (PurchaseState.DISPUTE, PurchaseState.COUNTER) else None,
        state=status,
        buyer=ALICE,
        held_amount=_HELD[status],
    )
    return state


def _timeout(source: bytes, pid: bytes = PID) -> Call:
    return Call(source=source, call_type=CallType.CALL_TIMEOUT, payload={"purchase_id": pid})


# --- buyer timeout cases ---


def test_buyer_timeout_accepted(state_test_group) -> None:
    state = _stalled(PurchaseState.ACCEPTED, TIMEOUT + 1)
    post, result = state_test_group(
        "calls/timeout/buyer_timeout.json", "buyer_timeout_accepted", state, _timeout(ALICE)
    )
    assert result.ok
    assert post.contracts[PID].state == PurchaseState.FAILED
    assert post.contracts[PID].held_amount == 0
    assert get_balance(post, ALICE) == 1_000 + VALUE


def test_buyer_timeout_dispute(state_test_group) -> None:
    state = _stalled(PurchaseState.DISPUTE, TIMEOUT + 1)
    post, result = state_test_group(
        "calls/timeout/buyer_timeout.json", "buyer_timeout_dispute", state, _timeout(ALICE)
    )
    assert result.ok
    assert post.contracts[PID].state == PurchaseState.FAILED
    assert get_balance(post, ALICE) == 1_000 + 2 * VALUE


def test_buyer_timeout_at_boundary(state_test_group) -> None:
    state = _stalled(PurchaseState.ACCEPTED, TIMEOUT)
    post, result = state_test_group(
        "calls/timeout/buyer_timeout.json", "buyer_timeout_at_boundary", state, _timeout(ALICE)
    )
    assert result.error.code == ErrorCode.TIMEOUT_NOT_YET_ELAPSED
    assert post.contracts[PID].state == PurchaseState.ACCEPTED
    assert get_balance(post, ALICE) == 1_000


def test_buyer_timeout_while_seller_waits(state_test_group) -> None:
    state = _stalled(PurchaseState.DELIVERED, TIMEOUT + 1)
    _, result = state_test_group(
        "calls/timeout/buyer_timeout.json", "buyer_timeout_while_seller_waits", state, _timeout(ALICE)
    )
    assert result.error.code == ErrorCode.INVALID_STATE


def test_buyer_timeout_requested(state_test_group) -> None:
    # A requested purchase is ended with ABORT, not by timeout.
    state = _stalled(PurchaseState.REQUESTED, TIMEOUT + 1)
    _, result = state_test_group(
        "calls/timeout/buyer_timeout.json", "buyer_timeout_requested", state, _timeout(ALICE)
    )
    assert result.error.code == ErrorCode.INVALID_STATE


# --- seller timeout cases ---


def test_seller_timeout_delivered(state_test_group) -> None:
    state = _stalled(PurchaseState.DELIVERED, TIMEOUT + 1)
    post, result = state_test_group(
        "calls/timeout/seller_timeout.json", "seller_timeout_delivered", state, _timeout(SELLER)
    )
    assert result.ok
    assert post.contracts[PID].state == PurchaseState.COMPLETED
    assert get_balance(post, SELLER) == 500 + VALUE


def test_seller_timeout_counter(state_test_group) -> None:
    state = _stalled(PurchaseState.COUNTER, TIMEOUT + 1)
    post, result = state_test_group(
        "calls/timeout/seller_timeout.json", "seller_timeout_counter", state, _timeout(SELLER)
    )
    assert result.ok
    assert post.contracts[PID].state == PurchaseState.COMPLETED
    assert get_balance(post, SELLER) == 500 + 3 * VALUE
    assert get_balance(post, ALICE) == 1_000


def test_seller_timeout_at_boundary(state_test_group) -> None:
    state = _stalled(PurchaseState.COUNTER, TIMEOUT)
    _, result = state_test_group(
        "calls/timeout/seller_timeout.json", "seller_timeout_at_boundary", state, _timeout(SELLER)
    )
    assert result.error.code == ErrorCode.TIMEOUT_NOT_YET_ELAPSED


def test_seller_timeout_while_buyer_waits(state_test_group) -> None:
    state = _stalled(PurchaseState.ACCEPTED, TIMEOUT + 1)
    _, result = state_test_group(
        "calls/timeout/seller_timeout.json", "seller_timeout_while_buyer_waits", state, _timeout(SELLER)
    )
    assert result.error.code == ErrorCode.INVALID_STATE


def test_timeout_by_stranger(state_test_group) -> None:
    state = _stalled(PurchaseState.ACCEPTED, TIMEOUT + 1)
    _, result = state_test_group(
        "calls/timeout/buyer_timeout.json", "timeout_by_stranger", state, _timeout(BOB)
    )
    assert result.error.code == ErrorCode.UNAUTHORIZED


def test_timeout_with_value(state_test_group) -> None:
    state = _stalled(PurchaseState.ACCEPTED, TIMEOUT + 1)
    call = Call(source=ALICE, call_type=CallType.CALL_TIMEOUT, payload={"purchase_id": PID}, value=1)
    _, result = state_test_group(
        "calls/timeout/buyer_timeout.json", "timeout_with_value", state, call
    )
    assert result.error.code == ErrorCode.VALUE_MISMATCH


# --- scenarios ---


def _fresh_store() -> StoreState:
    state = create_store(SELLER, timeout=TIMEOUT, balances={ALICE: 1_000, SELLER: 500}, timestamp=LAST)
    state.listings[ITEM_ID] = Item(value=VALUE, description="bike")
    return state


def _step(state: StoreState, source: bytes, call_type: CallType, payload: dict, value: int = 0) -> StoreState:
    state, result = apply_call(state, Call(source=source, call_type=call_type, payload=payload, value=value))
    assert result.ok, result.error
    return state


def test_abandoned_dispute_scenario() -> None:
    state = _fresh_store()
    state, result = apply_call(
        state, Call(ALICE, CallType.REQUEST_PURCHASE, {"item_id": ITEM_ID}, VALUE)
    )
    pid = result.return_value
    state = _step(state, SELLER, CallType.ACCEPT_CONTRACT, {"purchase_id": pid})
    state = _step(state, SELLER, CallType.ITEM_WAS_DELIVERED, {"purchase_id": pid})
    buyer_before_dispute = get_balance(state, ALICE)
    state = _step(
        state, ALICE, CallType.DISPUTE_DELIVERY,
        {"purchase_id": pid, "commitment": make_commitment(False, pid, random_nonce())}, VALUE,
    )

    # Seller never counters.
    state = advance_time(state, TIMEOUT)
    state, result = apply_call(state, _timeout(ALICE, pid))
    assert result.error.code == ErrorCode.TIMEOUT_NOT_YET_ELAPSED

    state = advance_time(state, 1)
    state, result = apply_call(state, _timeout(ALICE, pid))
    assert result.ok
    assert get_balance(state, ALICE) == buyer_before_dispute + VALUE
    assert get_balance(state, ALICE) == 1_000
    assert state.contracts[pid].state == PurchaseState.FAILED
    assert state.contracts[pid].held_amount == 0


def test_counterparty_action_resets_anchor() -> None:
    state = _fresh_store()
    state, result = apply_call(
        state, Call(ALICE, CallType.REQUEST_PURCHASE, {"item_id": ITEM_ID}, VALUE)
    )
    pid = result.return_value
    state = _step(state, SELLER, CallType.ACCEPT_CONTRACT, {"purchase_id": pid})

    # Seller delivers just before the buyer could time out.
    state = advance_time(state, TIMEOUT)
    state = _step(state, SELLER, CallType.ITEM_WAS_DELIVERED, {"purchase_id": pid})
    state = advance_time(state, 1)
    _, result = apply_call(state, _timeout(ALICE, pid))
    assert result.error.code == ErrorCode.INVALID_STATE

    # The seller's own clock starts at delivery.
    _, result = apply_call(state, _timeout(SELLER, pid))
    assert result.error.code == ErrorCode.TIMEOUT_NOT_YET_ELAPSED
    state = advance_time(state, TIMEOUT)
    state, result = apply_call(state, _timeout(SELLER, pid))
    assert result.ok
    assert state.contracts[pid].state == PurchaseState.COMPLETED
    assert get_balance(state, SELLER) == 500 + VALUE
